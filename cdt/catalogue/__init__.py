"""Declarative tool catalogue."""

from .loader import default_catalogue_path, load_catalogue, parse_catalogue
from .model import (
    BACKENDS,
    SYSTEM_BACKENDS,
    Backend,
    Catalogue,
    CatalogueError,
    CommandCheck,
    DetectCheck,
    FlatpakCheck,
    InstallAction,
    PathCheck,
    SnapCheck,
    ToolEntry,
)

__all__ = [
    # model
    "BACKENDS",
    "SYSTEM_BACKENDS",
    "Backend",
    "Catalogue",
    "CatalogueError",
    "CommandCheck",
    "DetectCheck",
    "FlatpakCheck",
    "InstallAction",
    "PathCheck",
    "SnapCheck",
    "ToolEntry",
    # loader
    "default_catalogue_path",
    "load_catalogue",
    "parse_catalogue",
]

"""Platform abstraction layer."""

from .detection import (
    Arch,
    LinuxDistro,
    Platform,
    PlatformInfo,
    detect,
    is_root,
)
from .paths import (
    expand,
    home,
    user_config_dir,
)
from .process import (
    ProcessError,
    run_cancellable,
)

__all__ = [
    # detection
    "Arch",
    "LinuxDistro",
    "Platform",
    "PlatformInfo",
    "detect",
    "is_root",
    # paths
    "expand",
    "home",
    "user_config_dir",
    # process
    "ProcessError",
    "run_cancellable",
]

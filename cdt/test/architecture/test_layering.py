from __future__ import annotations

import ast
import importlib
from dataclasses import dataclass
from pathlib import Path

import pytest


@dataclass(frozen=True, slots=True)
class ImportRef:
    module: str
    line: int


def cdt_root() -> Path:
    return Path(__file__).resolve().parents[2]


def iter_python_files(base: Path) -> list[Path]:
    root = cdt_root()
    files: list[Path] = []
    for path in sorted(base.rglob("*.py")):
        rel = path.relative_to(root)
        if any(part.startswith(".") or part == "__pycache__" for part in rel.parts):
            continue
        if rel.parts and rel.parts[0] == "test":
            continue
        files.append(path)
    return files


def read_tree(path: Path) -> ast.AST:
    return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))


def parse_imports(path: Path) -> list[ImportRef]:
    imports: list[ImportRef] = []
    for node in ast.walk(read_tree(path)):
        if isinstance(node, ast.Import):
            imports.extend(ImportRef(alias.name, node.lineno) for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and not node.level and node.module:
            imports.append(ImportRef(node.module, node.lineno))
    return imports


def matches_prefix(module: str, prefix: str) -> bool:
    return module == prefix or module.startswith(prefix + ".")


def test_services_do_not_import_cli_modules() -> None:
    root = cdt_root()
    offenders: list[str] = []

    for file_path in iter_python_files(root / "services"):
        rel = file_path.relative_to(root)
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "cdt.cli") or matches_prefix(item.module, "typer"):
                offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")

    assert not offenders, "services -> cli dependency violations:\n" + "\n".join(offenders)


def test_catalogue_and_core_do_not_import_services() -> None:
    root = cdt_root()
    offenders: list[str] = []

    for package in ("core", "catalogue", "platform"):
        for file_path in iter_python_files(root / package):
            rel = file_path.relative_to(root)
            for item in parse_imports(file_path):
                if matches_prefix(item.module, "cdt.services") or matches_prefix(item.module, "cdt.cli"):
                    offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")

    assert not offenders, "layering violations:\n" + "\n".join(offenders)


def test_direct_rich_imports_are_limited_to_output() -> None:
    root = cdt_root()
    allowlist = {"output/console.py", "output/log.py"}
    offenders: list[str] = []

    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root)
        if rel.as_posix() in allowlist:
            continue
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "rich"):
                offenders.append(f"{rel}:{item.line}: direct rich import '{item.module}'")

    assert not offenders, "Direct rich usage policy violations:\n" + "\n".join(offenders)


def _direct_subprocess_calls(tree: ast.AST) -> list[int]:
    lines: list[int] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        func = node.func
        if (
            isinstance(func, ast.Attribute)
            and func.attr in {"run", "check_output", "Popen"}
            and isinstance(func.value, ast.Name)
            and func.value.id == "subprocess"
        ):
            lines.append(node.lineno)
    return lines


def test_direct_subprocess_usage_is_constrained_to_allowlist() -> None:
    root = cdt_root()
    allowlist = {"platform/process.py", "services/probe.py"}
    offenders: list[str] = []

    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root)
        if rel.as_posix() in allowlist:
            continue
        for line in _direct_subprocess_calls(read_tree(file_path)):
            offenders.append(f"{rel}:{line}: direct subprocess call outside allowlist")

    assert not offenders, "Subprocess policy violations:\n" + "\n".join(offenders)


@pytest.mark.parametrize(
    "package",
    ["cdt", "cdt.core", "cdt.platform", "cdt.output", "cdt.catalogue", "cdt.services", "cdt.cli.app"],
)
def test_public_exports_resolve(package: str) -> None:
    module = importlib.import_module(package)
    missing = [name for name in getattr(module, "__all__", []) if not hasattr(module, name)]
    assert not missing, f"{package}.__all__ names undefined attributes: {missing}"

"""Version string helpers.

Tools print versions in many shapes (``jq-1.7.1``, ``go version go1.22.3
linux/amd64``, ``rustc 1.79.0 (129f3b996 2024-06-10)``). We only need the
first dotted numeric run to compare against a catalogue minimum.
"""

from __future__ import annotations

import re

__all__ = ["first_line", "parse_version", "format_version", "version_at_least"]

_VERSION_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")
_BARE_RE = re.compile(r"^\s*v?(\d+)\s*$")


def first_line(text: str) -> str:
    """Extract first non-empty line from text."""
    for line in text.strip().splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return ""


def parse_version(text: str) -> tuple[int, ...] | None:
    """Parse the first X.Y or X.Y.Z run from text.

    A bare major version (``"3"`` or ``"v3"``) is accepted when it is the
    whole string, so catalogue minimums can be written loosely.
    """
    match = _VERSION_RE.search(text)
    if match:
        return tuple(int(part) for part in match.groups() if part is not None)
    bare = _BARE_RE.match(text)
    if bare:
        return (int(bare.group(1)),)
    return None


def format_version(version: tuple[int, ...]) -> str:
    return ".".join(str(part) for part in version)


def version_at_least(found: tuple[int, ...], minimum: tuple[int, ...]) -> bool:
    """Compare component-wise; missing components count as 0."""
    width = max(len(found), len(minimum))
    padded_found = found + (0,) * (width - len(found))
    padded_min = minimum + (0,) * (width - len(minimum))
    return padded_found >= padded_min

"""Host platform detection.

Detects the operating system, CPU architecture and Linux distribution family.
The result is only used for display and to mark the distro's native
backend: which package managers are usable is decided by probing for their
binaries, not by trusting /etc/os-release.
"""

from __future__ import annotations

import os as _os
import platform as _platform
import sys as _sys
from dataclasses import dataclass
from enum import Enum, auto
from functools import lru_cache
from pathlib import Path

__all__ = [
    "Platform",
    "Arch",
    "LinuxDistro",
    "PlatformInfo",
    "detect",
    "detect_arch",
    "detect_linux_distro",
    "detect_platform",
    "is_root",
]


class Platform(Enum):
    """Operating system platform."""

    LINUX = auto()
    MACOS = auto()
    WINDOWS = auto()
    UNKNOWN = auto()

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_unix(self) -> bool:
        return self in (Platform.LINUX, Platform.MACOS)


class Arch(Enum):
    """CPU architecture."""

    X64 = auto()
    ARM64 = auto()
    UNKNOWN = auto()

    def __str__(self) -> str:
        return self.name.lower()


class LinuxDistro(Enum):
    """Linux distribution family."""

    DEBIAN = auto()  # Debian, Ubuntu, Mint, Pop!_OS, etc.
    FEDORA = auto()  # Fedora, RHEL, CentOS, Rocky, etc.
    ARCH = auto()  # Arch, Manjaro, EndeavourOS, etc.
    SUSE = auto()  # openSUSE, SLES, etc.
    UNKNOWN = auto()

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def native_backend(self) -> str | None:
        """Backend id of the distro's own package manager."""
        return {
            LinuxDistro.DEBIAN: "apt",
            LinuxDistro.FEDORA: "dnf",
            LinuxDistro.ARCH: "pacman",
            LinuxDistro.SUSE: "zypper",
            LinuxDistro.UNKNOWN: None,
        }[self]


@dataclass(frozen=True, slots=True)
class PlatformInfo:
    """Complete platform information. Use `detect()` to get an instance."""

    platform: Platform
    arch: Arch
    distro: LinuxDistro

    @property
    def is_linux(self) -> bool:
        return self.platform == Platform.LINUX

    def __str__(self) -> str:
        if self.platform == Platform.LINUX and self.distro != LinuxDistro.UNKNOWN:
            return f"{self.platform}-{self.distro}-{self.arch}"
        return f"{self.platform}-{self.arch}"


@lru_cache(maxsize=1)
def detect_platform() -> Platform:
    """Detect the current operating system (cached)."""
    system = _sys.platform.lower()
    if system.startswith("linux"):
        return Platform.LINUX
    if system.startswith("darwin"):
        return Platform.MACOS
    if system.startswith(("win32", "cygwin", "msys")):
        return Platform.WINDOWS
    return Platform.UNKNOWN


@lru_cache(maxsize=1)
def detect_arch() -> Arch:
    """Detect the current CPU architecture (cached)."""
    machine = _platform.machine().lower()
    if machine in ("x86_64", "amd64"):
        return Arch.X64
    if machine in ("aarch64", "arm64"):
        return Arch.ARM64
    return Arch.UNKNOWN


def _read_os_release() -> str | None:
    try:
        return Path("/etc/os-release").read_text().lower()
    except OSError:
        return None


def distro_from_os_release(content: str) -> LinuxDistro:
    """Classify /etc/os-release content (lowercased) into a distro family."""
    # Order matters: fedora before debian ("rhel" never mentions debian, but
    # derivatives list their parents in ID_LIKE)
    if any(x in content for x in ("fedora", "rhel", "centos", "rocky", "almalinux")):
        return LinuxDistro.FEDORA
    if any(x in content for x in ("ubuntu", "debian", "mint", "pop")):
        return LinuxDistro.DEBIAN
    if any(x in content for x in ("arch", "manjaro", "endeavour")):
        return LinuxDistro.ARCH
    if any(x in content for x in ("opensuse", "suse", "sles")):
        return LinuxDistro.SUSE
    return LinuxDistro.UNKNOWN


@lru_cache(maxsize=1)
def detect_linux_distro() -> LinuxDistro:
    """Detect Linux distribution family (cached).

    Returns LinuxDistro.UNKNOWN off Linux or when /etc/os-release is
    unreadable or unrecognized.
    """
    if detect_platform() != Platform.LINUX:
        return LinuxDistro.UNKNOWN

    content = _read_os_release()
    if content is None:
        return LinuxDistro.UNKNOWN
    return distro_from_os_release(content)


@lru_cache(maxsize=1)
def detect() -> PlatformInfo:
    """Detect complete platform information (cached)."""
    return PlatformInfo(
        platform=detect_platform(),
        arch=detect_arch(),
        distro=detect_linux_distro(),
    )


def is_root() -> bool:
    """True when running with effective uid 0 (always False off Unix)."""
    geteuid = getattr(_os, "geteuid", None)
    if geteuid is None:
        return False
    return geteuid() == 0

"""Host platform detection and the Bitwarden CLI release catalog."""

from __future__ import annotations

import platform
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .errors import UnsupportedPlatformError


class OperatingSystem(str, Enum):
    """Operating systems with a known installation strategy."""

    LINUX = "linux"
    WINDOWS = "windows"
    MACOS = "macos"


class Architecture(str, Enum):
    """CPU architectures, normalized from ``platform.machine()``."""

    X64 = "x64"
    ARM64 = "arm64"
    X86 = "x86"
    ARM = "arm"
    OTHER = "other"


@dataclass(frozen=True)
class PlatformTarget:
    """The platform the client has to run on."""

    os: OperatingSystem
    arch: Architecture

    def __str__(self) -> str:
        """Return ``os/arch``."""
        return f"{self.os.value}/{self.arch.value}"


@dataclass(frozen=True)
class ReleaseSpec:
    """A release zip and the version tag it carries."""

    download_url: str
    version: str


@dataclass(frozen=True)
class AlternateInstall:
    """Install through the system package manager instead of a release zip."""

    package: str


CatalogEntry = Union[ReleaseSpec, AlternateInstall]

_RELEASES = "https://github.com/bitwarden/clients/releases/download"

# Keyed by (os, arch); arch None matches any architecture.
CATALOG: dict[tuple[OperatingSystem, Architecture | None], CatalogEntry] = {
    (OperatingSystem.WINDOWS, None): ReleaseSpec(
        download_url=f"{_RELEASES}/cli-v2024.2.1/bw-windows-2024.2.1.zip",
        version="v2024.2.1",
    ),
    (OperatingSystem.MACOS, None): ReleaseSpec(
        download_url=f"{_RELEASES}/cli-v2024.7.2/bw-macos-2024.7.2.zip",
        version="v2024.7.2",
    ),
    (OperatingSystem.LINUX, None): ReleaseSpec(
        download_url=f"{_RELEASES}/cli-v2024.7.2/bw-linux-2024.7.2.zip",
        version="v2024.7.2",
    ),
    (OperatingSystem.LINUX, Architecture.ARM64): AlternateInstall(package="@bitwarden/cli"),
}

_SYSTEMS = {
    "linux": OperatingSystem.LINUX,
    "windows": OperatingSystem.WINDOWS,
    "darwin": OperatingSystem.MACOS,
}

_MACHINES = {
    "x86_64": Architecture.X64,
    "amd64": Architecture.X64,
    "x64": Architecture.X64,
    "aarch64": Architecture.ARM64,
    "arm64": Architecture.ARM64,
    "i386": Architecture.X86,
    "i686": Architecture.X86,
    "x86": Architecture.X86,
}


def _normalize_machine(machine: str) -> Architecture:
    machine = machine.lower()
    if machine in _MACHINES:
        return _MACHINES[machine]
    if machine.startswith("arm"):
        return Architecture.ARM
    return Architecture.OTHER


def resolve(system: str | None = None, machine: str | None = None) -> PlatformTarget:
    """Detect the current platform and architecture.

    Args:
        system: Override for ``platform.system()``
        machine: Override for ``platform.machine()``

    Returns:
        The resolved PlatformTarget

    Raises:
        UnsupportedPlatformError: If the OS is not Linux, Windows or macOS

    """
    system = (system if system is not None else platform.system()).lower()
    machine = machine if machine is not None else platform.machine()

    os_ = _SYSTEMS.get(system)
    if os_ is None:
        msg = f"Unsupported platform: {system or 'unknown'}"
        raise UnsupportedPlatformError(msg)
    return PlatformTarget(os=os_, arch=_normalize_machine(machine))


def lookup(
    target: PlatformTarget,
    catalog: dict[tuple[OperatingSystem, Architecture | None], CatalogEntry] | None = None,
) -> CatalogEntry:
    """Find the release or alternate installer for a platform."""
    if catalog is None:
        catalog = CATALOG
    entry = catalog.get((target.os, target.arch))
    if entry is None:
        entry = catalog.get((target.os, None))
    if entry is None:
        msg = f"No Bitwarden CLI release for {target}"
        raise UnsupportedPlatformError(msg)
    return entry


def binary_name(os_: OperatingSystem) -> str:
    """Return the client's file name on the given OS."""
    return "bw.exe" if os_ is OperatingSystem.WINDOWS else "bw"

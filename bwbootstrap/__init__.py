"""bwbootstrap - Bitwarden CLI bootstrapper.

Makes sure a runnable copy of the Bitwarden command-line client exists on the
local machine before a calling process invokes it. The release zip for the
current platform is downloaded and unpacked when the installed version does
not match the pinned one; on Linux arm64 the client is installed with npm.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .bootstrap import BootstrapResult, ClientBootstrapper, ensure_client_available
from .config import BootstrapConfig
from .errors import (
    AlternateInstallError,
    ArchiveEntryMissingError,
    ArchiveError,
    BootstrapError,
    CancelledError,
    DownloadError,
    LockTimeoutError,
    TransportError,
    UnsupportedPlatformError,
)
from .platforms import PlatformTarget, ReleaseSpec, lookup, resolve

__all__ = [
    "AlternateInstallError",
    "ArchiveEntryMissingError",
    "ArchiveError",
    "BootstrapConfig",
    "BootstrapError",
    "BootstrapResult",
    "CancelledError",
    "ClientBootstrapper",
    "DownloadError",
    "LockTimeoutError",
    "PlatformTarget",
    "ReleaseSpec",
    "TransportError",
    "UnsupportedPlatformError",
    "ensure_client_available",
    "lookup",
    "resolve",
]

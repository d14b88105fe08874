"""Make the installed client executable."""

from __future__ import annotations

import stat
from pathlib import Path

from .platforms import OperatingSystem
from .utils import log

OWNER_RWX = stat.S_IRUSR | stat.S_IWUSR | stat.S_IXUSR


def normalize(binary_path: Path, os_: OperatingSystem) -> None:
    """Set the binary's mode to exactly owner read/write/execute.

    Windows has no execute bit, so nothing happens there.
    """
    if os_ is OperatingSystem.WINDOWS:
        return
    log("Ensuring required permissions are set on CLI client file", "debug")
    binary_path.chmod(OWNER_RWX)

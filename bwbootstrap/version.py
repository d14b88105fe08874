"""Version marker handling: decides whether the client must be (re)installed."""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from .utils import log

if TYPE_CHECKING:
    from .paths import InstallationPaths

# MarkerUnreadable => Stale: any of these while reading the marker forces a reinstall.
MARKER_UNREADABLE_IS_STALE = (OSError, UnicodeDecodeError)


def read_marker(path: Path) -> str | None:
    """Return the stripped contents of the version marker, or None if unreadable."""
    try:
        return path.read_text(encoding="utf-8").strip()
    except MARKER_UNREADABLE_IS_STALE as e:
        log(f"Version file missing or corrupt ({e.__class__.__name__})", "debug")
        return None


def needs_install(paths: InstallationPaths, required_version: str) -> bool:
    """Check if the client has to be downloaded.

    Version tags are compared as opaque strings, so ``v2024.7.2`` and
    ``2024.7.2`` are different versions.
    """
    if not paths.binary_file.exists():
        log("Bitwarden CLI client not found", "info", "🔍")
        return True

    installed = read_marker(paths.version_file)
    if installed is None:
        log("Version file missing or corrupt", "warning", "⚠️")
        return True
    if installed != required_version:
        log(f"Bitwarden CLI client {installed} is outdated (need {required_version})", "info", "🔄")
        return True

    log(f"Up-to-date Bitwarden CLI client {installed} found", "success", "✅")
    return False


def write_marker(path: Path, version: str) -> None:
    """Replace the version marker with ``version``."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(version)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


def invalidate_marker(path: Path) -> None:
    """Remove the version marker so the next check reinstalls."""
    path.unlink(missing_ok=True)

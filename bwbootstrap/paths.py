"""On-disk locations owned by bwbootstrap."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .platforms import OperatingSystem, binary_name

VERSION_FILE_NAME = "version"
LOCK_FILE_NAME = ".lock"
ARCHIVE_SUFFIX = "-bw.zip"


@dataclass(frozen=True)
class InstallationPaths:
    """Install directory, version marker and client binary."""

    install_dir: Path
    version_file: Path
    binary_file: Path

    @classmethod
    def for_platform(cls, root: str | Path, os_: OperatingSystem) -> InstallationPaths:
        """Derive all paths from the install directory."""
        root = Path(root).expanduser()
        return cls(
            install_dir=root,
            version_file=root / VERSION_FILE_NAME,
            binary_file=root / binary_name(os_),
        )

    @property
    def lock_file(self) -> Path:
        return self.install_dir / LOCK_FILE_NAME

    def archive_path(self, now: datetime | None = None) -> Path:
        """Return a fresh, timestamped path for a downloaded release zip."""
        now = now or datetime.now()
        return self.install_dir / f"{now:%Y%m%d_%H%M%S_%f}{ARCHIVE_SUFFIX}"

    def ensure(self) -> None:
        """Create the install directory."""
        self.install_dir.mkdir(parents=True, exist_ok=True)

"""Extract the client binary from a downloaded release zip."""

from __future__ import annotations

import os
import threading
import zipfile
import zlib
from pathlib import Path
from typing import IO, TYPE_CHECKING, Callable, ContextManager, Protocol

from .errors import ArchiveEntryMissingError, ArchiveError
from .utils import check_cancelled, log
from .version import invalidate_marker, write_marker

if TYPE_CHECKING:
    from .paths import InstallationPaths

PARTIAL_SUFFIX = ".partial"


class Archive(Protocol):
    """The subset of ``zipfile.ZipFile`` used here."""

    def namelist(self) -> list[str]: ...

    def open(self, name: str) -> IO[bytes]: ...


ArchiveOpener = Callable[[Path], ContextManager[Archive]]


def _copy_stream(
    source: IO[bytes],
    destination: Path,
    cancel_event: threading.Event | None,
    chunk_size: int,
) -> None:
    """Copy ``source`` to ``destination`` and flush it to disk."""
    with open(destination, "wb") as f:
        while True:
            check_cancelled(cancel_event, "Extraction")
            chunk = source.read(chunk_size)
            if not chunk:
                break
            f.write(chunk)
        f.flush()
        os.fsync(f.fileno())


def extract_entry(
    archive_path: Path,
    entry_name: str,
    destination: Path,
    *,
    open_archive: ArchiveOpener = zipfile.ZipFile,
    cancel_event: threading.Event | None = None,
    chunk_size: int = 65536,
) -> None:
    """Write the archive member named exactly ``entry_name`` to ``destination``.

    Nothing is left at ``destination`` if the entry is missing, the archive is
    corrupt or the copy is cancelled.
    """
    try:
        with open_archive(archive_path) as archive:
            if entry_name not in archive.namelist():
                raise ArchiveEntryMissingError(entry_name, str(archive_path))
            with archive.open(entry_name) as source:
                _copy_stream(source, destination, cancel_event, chunk_size)
    except (zipfile.BadZipFile, zlib.error, EOFError) as e:
        destination.unlink(missing_ok=True)
        msg = f"Failed to read archive {archive_path}: {e}"
        raise ArchiveError(msg) from e
    except BaseException:
        destination.unlink(missing_ok=True)
        raise


def _remove_archive(archive_path: Path) -> None:
    try:
        archive_path.unlink(missing_ok=True)
    except OSError as e:
        log(f"Could not delete {archive_path}: {e}", "warning", "⚠️")


def install(
    archive_path: str | Path,
    entry_name: str,
    paths: InstallationPaths,
    version: str,
    *,
    open_archive: ArchiveOpener = zipfile.ZipFile,
    cancel_event: threading.Event | None = None,
    chunk_size: int = 65536,
) -> Path:
    """Install the client binary from a release zip and record its version.

    The binary is staged next to its final location and moved into place
    with ``os.replace``. The version marker is removed before the move and
    written again only after it, so an interruption at any point leaves the
    installation in a state that the next check treats as stale.

    Args:
        archive_path: The downloaded zip
        entry_name: Exact name of the binary inside the zip
        paths: Where to install
        version: Version tag to record in the marker
        open_archive: Opens the archive, ``zipfile.ZipFile`` by default
        cancel_event: Aborts the copy when set
        chunk_size: Copy buffer size

    Returns:
        Path to the installed binary

    Raises:
        ArchiveEntryMissingError: The zip has no member named ``entry_name``
        ArchiveError: The zip could not be read
        CancelledError: ``cancel_event`` was set before the binary was replaced

    """
    archive_path = Path(archive_path)
    partial = paths.binary_file.with_name(paths.binary_file.name + PARTIAL_SUFFIX)
    log("Extracting Bitwarden CLI client...", "info", "📦")

    extract_entry(
        archive_path,
        entry_name,
        partial,
        open_archive=open_archive,
        cancel_event=cancel_event,
        chunk_size=chunk_size,
    )
    try:
        check_cancelled(cancel_event, "Extraction")
    except BaseException:
        partial.unlink(missing_ok=True)
        raise

    invalidate_marker(paths.version_file)
    os.replace(partial, paths.binary_file)
    _remove_archive(archive_path)
    write_marker(paths.version_file, version)
    log(f"Bitwarden CLI client {version} installed to {paths.binary_file}", "success", "✅")
    return paths.binary_file

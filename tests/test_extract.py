"""Tests for bwbootstrap.extract."""

from __future__ import annotations

import io
import threading
import zipfile
from pathlib import Path
from typing import Callable

import pytest

from bwbootstrap.errors import ArchiveEntryMissingError, ArchiveError, CancelledError
from bwbootstrap.extract import extract_entry, install
from bwbootstrap.paths import InstallationPaths


@pytest.fixture
def seeded(linux_paths: InstallationPaths) -> InstallationPaths:
    """An existing installation of v1."""
    linux_paths.ensure()
    linux_paths.binary_file.write_bytes(b"old binary")
    linux_paths.version_file.write_text("v1")
    return linux_paths


def _write_archive(paths: InstallationPaths, data: bytes) -> Path:
    paths.ensure()
    archive = paths.archive_path()
    archive.write_bytes(data)
    return archive


def test_install_replaces_binary_and_marker(
    seeded: InstallationPaths,
    create_zip: Callable[..., bytes],
) -> None:
    archive = _write_archive(seeded, create_zip({"bw": b"new binary", "README.md": b"docs"}))
    result = install(archive, "bw", seeded, "v2")
    assert result == seeded.binary_file
    assert seeded.binary_file.read_bytes() == b"new binary"
    assert seeded.version_file.read_text() == "v2"
    assert not archive.exists()
    assert sorted(p.name for p in seeded.install_dir.iterdir()) == ["bw", "version"]


def test_install_entry_name_must_match_exactly(
    seeded: InstallationPaths,
    create_zip: Callable[..., bytes],
) -> None:
    archive = _write_archive(seeded, create_zip({"dist/bw": b"nested", "bw.exe": b"windows"}))
    with pytest.raises(ArchiveEntryMissingError) as exc_info:
        install(archive, "bw", seeded, "v2")
    assert exc_info.value.entry_name == "bw"
    assert seeded.binary_file.read_bytes() == b"old binary"
    assert seeded.version_file.read_text() == "v1"


def test_install_corrupt_archive(seeded: InstallationPaths) -> None:
    archive = _write_archive(seeded, b"this is not a zip file")
    with pytest.raises(ArchiveError):
        install(archive, "bw", seeded, "v2")
    assert seeded.binary_file.read_bytes() == b"old binary"
    assert seeded.version_file.read_text() == "v1"


def test_install_cancelled_during_copy(
    seeded: InstallationPaths,
    create_zip: Callable[..., bytes],
) -> None:
    archive = _write_archive(seeded, create_zip({"bw": b"x" * 10_000}))
    cancel_event = threading.Event()
    real_zipfile = zipfile.ZipFile

    class CancellingZip(real_zipfile):
        def open(self, name, *args, **kwargs):  # noqa: A003
            handle = super().open(name, *args, **kwargs)
            read = handle.read

            def read_then_cancel(n: int = -1) -> bytes:
                data = read(n)
                cancel_event.set()
                return data

            handle.read = read_then_cancel
            return handle

    with pytest.raises(CancelledError):
        install(archive, "bw", seeded, "v2", open_archive=CancellingZip, cancel_event=cancel_event, chunk_size=100)
    assert seeded.binary_file.read_bytes() == b"old binary"
    assert seeded.version_file.read_text() == "v1"
    assert not seeded.binary_file.with_name("bw.partial").exists()


def test_install_keeps_going_when_archive_cannot_be_deleted(
    seeded: InstallationPaths,
    create_zip: Callable[..., bytes],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    archive = _write_archive(seeded, create_zip({"bw": b"new binary"}))
    real_unlink = Path.unlink

    def unlink(self: Path, missing_ok: bool = False) -> None:  # noqa: FBT001, FBT002
        if self == archive:
            msg = "busy"
            raise PermissionError(msg)
        real_unlink(self, missing_ok=missing_ok)

    monkeypatch.setattr(Path, "unlink", unlink)
    install(archive, "bw", seeded, "v2")
    assert seeded.version_file.read_text() == "v2"
    assert archive.exists()


def test_extract_entry_with_injected_opener(tmp_path: Path) -> None:
    class MemoryArchive:
        def __init__(self, _path: Path) -> None:
            self.entries = {"bw": b"from memory"}

        def __enter__(self) -> MemoryArchive:
            return self

        def __exit__(self, *exc: object) -> None:
            pass

        def namelist(self) -> list[str]:
            return list(self.entries)

        def open(self, name: str) -> io.BytesIO:  # noqa: A003
            return io.BytesIO(self.entries[name])

    destination = tmp_path / "bw"
    extract_entry(tmp_path / "ignored.zip", "bw", destination, open_archive=MemoryArchive)
    assert destination.read_bytes() == b"from memory"


def _garbled_deflated_zip(name: str, content: bytes) -> bytes:
    """A zip whose index is intact but whose compressed member data is not."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zip_file:
        zip_file.writestr(name, content)
    data = bytearray(buffer.getvalue())
    with zipfile.ZipFile(io.BytesIO(bytes(data))) as zip_file:
        info = zip_file.getinfo(name)
    offset = info.header_offset
    name_len = int.from_bytes(data[offset + 26 : offset + 28], "little")
    extra_len = int.from_bytes(data[offset + 28 : offset + 30], "little")
    start = offset + 30 + name_len + extra_len
    for i in range(start, start + info.compress_size):
        data[i] ^= 0xA5
    return bytes(data)


def test_install_damaged_compressed_data(seeded: InstallationPaths) -> None:
    archive = _write_archive(seeded, _garbled_deflated_zip("bw", b"#!/bin/sh\necho bw\n" * 500))
    with pytest.raises(ArchiveError):
        install(archive, "bw", seeded, "v2")
    assert seeded.binary_file.read_bytes() == b"old binary"
    assert seeded.version_file.read_text() == "v1"
    assert not seeded.binary_file.with_name("bw.partial").exists()

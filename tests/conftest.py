"""Configuration for pytest fixtures used in bwbootstrap tests."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Callable

import pytest
import requests

from bwbootstrap.config import BootstrapConfig
from bwbootstrap.package_manager import CommandResult
from bwbootstrap.paths import InstallationPaths
from bwbootstrap.platforms import OperatingSystem


def create_zip_bytes(files: dict[str, bytes]) -> bytes:
    """Create a zip archive with the specified members."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w") as zip_file:
        for name, content in files.items():
            zip_file.writestr(name, content)
    return buffer.getvalue()


class FakeResponse:
    """Streams a fixed body like a ``requests.Response`` opened with stream=True."""

    def __init__(
        self,
        body: bytes = b"",
        status_code: int = 200,
        reason: str = "OK",
        on_chunk: Callable[[int], None] | None = None,
    ) -> None:
        self.body = body
        self.status_code = status_code
        self.reason = reason
        self.on_chunk = on_chunk

    @property
    def ok(self) -> bool:
        return self.status_code < 400  # noqa: PLR2004

    def iter_content(self, chunk_size: int = 1):
        for i, start in enumerate(range(0, len(self.body), chunk_size)):
            if self.on_chunk is not None:
                self.on_chunk(i)
            yield self.body[start : start + chunk_size]

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc: object) -> None:
        pass


class FakeSession:
    """Replays queued responses (or raises queued exceptions) for GET requests."""

    def __init__(self, *responses: FakeResponse | Exception) -> None:
        self.responses = list(responses)
        self.calls: list[str] = []

    def __enter__(self) -> FakeSession:
        return self

    def __exit__(self, *exc: object) -> None:
        pass

    def get(self, url: str, stream: bool = False, timeout: float | None = None):  # noqa: ARG002
        self.calls.append(url)
        if not self.responses:
            msg = f"unexpected request to {url}"
            raise AssertionError(msg)
        response = self.responses[0] if len(self.responses) == 1 else self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeRunner:
    """Records commands and answers them from a table keyed by argv[0]."""

    def __init__(self, results: dict[str, CommandResult | Exception] | None = None) -> None:
        self.results = results or {}
        self.calls: list[list[str]] = []

    def __call__(self, argv: list[str]) -> CommandResult:
        self.calls.append(argv)
        result = self.results.get(argv[0], CommandResult(0, "", ""))
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def create_zip() -> Callable[..., bytes]:
    """Return a function building release zip bytes."""
    return create_zip_bytes


@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    return tmp_path / "client"


@pytest.fixture
def linux_paths(install_dir: Path) -> InstallationPaths:
    return InstallationPaths.for_platform(install_dir, OperatingSystem.LINUX)


@pytest.fixture
def config(install_dir: Path, tmp_path: Path) -> BootstrapConfig:
    return BootstrapConfig(
        install_dir=install_dir,
        backoff=0,
        lock_timeout=1,
        npm_cache_dir=tmp_path / "no-npm-cache",
    )


@pytest.fixture
def connection_error() -> requests.ConnectionError:
    return requests.ConnectionError("connection refused")

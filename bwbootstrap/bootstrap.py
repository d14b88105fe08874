"""Make sure the Bitwarden CLI is installed and current before it is used."""

from __future__ import annotations

import contextlib
import threading
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ContextManager

import requests

from .config import BootstrapConfig
from .download import fetch
from .extract import ArchiveOpener, install
from .lock import install_lock
from .package_manager import Runner, install_with_package_manager, run_command
from .paths import InstallationPaths
from .permissions import normalize
from .platforms import (
    CATALOG,
    AlternateInstall,
    Architecture,
    CatalogEntry,
    OperatingSystem,
    PlatformTarget,
    ReleaseSpec,
    lookup,
    resolve,
)
from .utils import log
from .version import needs_install, read_marker

ARCHIVE = "archive"
PACKAGE_MANAGER = "package-manager"


@dataclass(frozen=True)
class BootstrapResult:
    """Outcome of one ensure_available call."""

    target: PlatformTarget
    strategy: str
    installed: bool
    version: str | None = None
    binary_path: Path | None = None


class ClientBootstrapper:
    """Installs the client for the current platform when it is missing or stale.

    The HTTP session, archive opener and process runner are injectable so the
    whole flow can run without network access or child processes.
    """

    # Entry type -> method name; one row per installation strategy.
    _STRATEGIES = {
        ReleaseSpec: "_ensure_from_archive",
        AlternateInstall: "_ensure_from_package_manager",
    }

    def __init__(
        self,
        config: BootstrapConfig | None = None,
        session: requests.Session | None = None,
        *,
        runner: Runner = run_command,
        open_archive: ArchiveOpener = zipfile.ZipFile,
        target: PlatformTarget | None = None,
        catalog: dict[tuple[OperatingSystem, Architecture | None], CatalogEntry] | None = None,
    ) -> None:
        self.config = config or BootstrapConfig()
        self.session = session
        self.runner = runner
        self.open_archive = open_archive
        self.catalog = CATALOG if catalog is None else catalog
        self._target = target

    @property
    def target(self) -> PlatformTarget:
        if self._target is None:
            self._target = resolve()
        return self._target

    def paths(self) -> InstallationPaths:
        return InstallationPaths.for_platform(self.config.install_dir, self.target.os)

    def ensure_available(self, cancel_event: threading.Event | None = None) -> BootstrapResult:
        """Install or update the client if needed.

        Raises:
            UnsupportedPlatformError: No installation strategy for this host
            DownloadError: The release could not be downloaded
            TransportError: The release server could not be reached
            ArchiveEntryMissingError: The release zip has no client binary
            AlternateInstallError: The npm install failed
            CancelledError: ``cancel_event`` was set
            LockTimeoutError: Another install kept the directory locked

        """
        target = self.target
        entry = lookup(target, self.catalog)
        method = getattr(self, self._STRATEGIES[type(entry)])
        return method(target, entry, cancel_event)

    def _ensure_from_package_manager(
        self,
        target: PlatformTarget,
        entry: AlternateInstall,
        cancel_event: threading.Event | None,  # noqa: ARG002
    ) -> BootstrapResult:
        log(f"Detected {target}, installing Bitwarden CLI using npm", "info", "🔧")
        install_with_package_manager(
            entry.package,
            runner=self.runner,
            cache_dir=self.config.npm_cache_dir,
            owner=self.config.npm_cache_owner,
        )
        return BootstrapResult(target=target, strategy=PACKAGE_MANAGER, installed=True)

    def _ensure_from_archive(
        self,
        target: PlatformTarget,
        release: ReleaseSpec,
        cancel_event: threading.Event | None,
    ) -> BootstrapResult:
        paths = self.paths()
        paths.ensure()
        log("Checking for Bitwarden CLI client...", "info", "🔍")
        with self._lock(paths, cancel_event):
            installed = needs_install(paths, release.version)
            if installed:
                self._download_and_install(release, paths, cancel_event)
            normalize(paths.binary_file, target.os)
        return BootstrapResult(
            target=target,
            strategy=ARCHIVE,
            installed=installed,
            version=release.version,
            binary_path=paths.binary_file,
        )

    def _download_and_install(
        self,
        release: ReleaseSpec,
        paths: InstallationPaths,
        cancel_event: threading.Event | None,
    ) -> None:
        archive = self._fetch(release.download_url, paths, cancel_event)
        try:
            install(
                archive,
                paths.binary_file.name,
                paths,
                release.version,
                open_archive=self.open_archive,
                cancel_event=cancel_event,
            )
        except BaseException:
            archive.unlink(missing_ok=True)
            raise

    def _fetch(
        self,
        url: str,
        paths: InstallationPaths,
        cancel_event: threading.Event | None,
    ) -> Path:
        kwargs: dict[str, Any] = {
            "cancel_event": cancel_event,
            "timeout": self.config.timeout,
            "max_attempts": self.config.max_attempts,
            "backoff": self.config.backoff,
            "chunk_size": self.config.chunk_size,
        }
        if self.session is not None:
            return fetch(url, paths, self.session, **kwargs)
        with requests.Session() as session:
            return fetch(url, paths, session, **kwargs)

    def _lock(
        self,
        paths: InstallationPaths,
        cancel_event: threading.Event | None,
    ) -> ContextManager[Any]:
        if not self.config.use_lock:
            return contextlib.nullcontext()
        return install_lock(
            paths.lock_file,
            timeout=self.config.lock_timeout,
            cancel_event=cancel_event,
        )

    def status(self) -> dict[str, Any]:
        """Describe the installation without changing anything."""
        target = self.target
        entry = lookup(target, self.catalog)
        if isinstance(entry, AlternateInstall):
            return {
                "target": str(target),
                "strategy": PACKAGE_MANAGER,
                "package": entry.package,
                "required_version": None,
                "installed_version": None,
                "needs_install": True,
            }
        paths = self.paths()
        installed_version = (
            read_marker(paths.version_file) if paths.binary_file.exists() else None
        )
        return {
            "target": str(target),
            "strategy": ARCHIVE,
            "binary": str(paths.binary_file),
            "required_version": entry.version,
            "installed_version": installed_version,
            "needs_install": installed_version != entry.version,
        }


def ensure_client_available(
    config: BootstrapConfig | None = None,
    session: requests.Session | None = None,
    cancel_event: threading.Event | None = None,
) -> BootstrapResult:
    """Install or update the client for the current host."""
    return ClientBootstrapper(config, session).ensure_available(cancel_event)

"""Download functions for bwbootstrap."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import TYPE_CHECKING

import requests

from .errors import CancelledError, DownloadError, TransportError
from .utils import check_cancelled, log

if TYPE_CHECKING:
    from .paths import InstallationPaths


def _is_retryable(error: Exception) -> bool:
    if isinstance(error, TransportError):
        return True
    return isinstance(error, DownloadError) and error.retryable


def _sleep(delay: float, cancel_event: threading.Event | None) -> None:
    if cancel_event is None:
        time.sleep(delay)
    elif cancel_event.wait(delay):
        msg = "Download cancelled"
        raise CancelledError(msg)


def _download_once(
    url: str,
    destination: Path,
    session: requests.Session,
    cancel_event: threading.Event | None,
    timeout: float,
    chunk_size: int,
) -> None:
    try:
        with session.get(url, stream=True, timeout=timeout) as response:
            if not response.ok:
                raise DownloadError(url, response.status_code, response.reason or "")
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=chunk_size):
                    check_cancelled(cancel_event, "Download")
                    if chunk:
                        f.write(chunk)
    except requests.RequestException as e:
        raise TransportError(url, e) from e


def download_file(
    url: str,
    destination: str | Path,
    session: requests.Session,
    *,
    cancel_event: threading.Event | None = None,
    timeout: float = 30,
    max_attempts: int = 3,
    backoff: float = 1.0,
    chunk_size: int = 8192,
) -> Path:
    """Download a file from a URL to a destination path.

    The body is streamed to disk chunk by chunk. Connection failures and 5xx
    responses are retried up to ``max_attempts`` times in total, waiting
    ``backoff * 2**attempt`` seconds in between. The partially written file
    is removed whenever the download does not complete.

    Raises:
        DownloadError: The server answered with a non-success status
        TransportError: The request could not be completed
        CancelledError: ``cancel_event`` was set

    """
    destination = Path(destination)
    attempts = max(1, max_attempts)
    log(f"Downloading from {url}", "info", "📥")
    for attempt in range(attempts):
        check_cancelled(cancel_event, "Download")
        try:
            _download_once(url, destination, session, cancel_event, timeout, chunk_size)
        except (DownloadError, TransportError) as e:
            destination.unlink(missing_ok=True)
            if not _is_retryable(e) or attempt == attempts - 1:
                log(f"Download failed: {e}", "error", "❌")
                raise
            delay = backoff * 2**attempt
            log(f"{e}; retrying in {delay:.1f}s ({attempt + 1}/{attempts})", "warning", "⚠️")
            _sleep(delay, cancel_event)
        except BaseException:
            destination.unlink(missing_ok=True)
            raise
        else:
            return destination


def fetch(
    url: str,
    paths: InstallationPaths,
    session: requests.Session,
    *,
    cancel_event: threading.Event | None = None,
    timeout: float = 30,
    max_attempts: int = 3,
    backoff: float = 1.0,
    chunk_size: int = 8192,
) -> Path:
    """Download a release zip to a fresh, timestamped file in the install directory."""
    paths.ensure()
    return download_file(
        url,
        paths.archive_path(),
        session,
        cancel_event=cancel_event,
        timeout=timeout,
        max_attempts=max_attempts,
        backoff=backoff,
        chunk_size=chunk_size,
    )

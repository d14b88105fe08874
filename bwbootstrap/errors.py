"""Exceptions raised by bwbootstrap."""

from __future__ import annotations


class BootstrapError(Exception):
    """Base class for all bwbootstrap errors."""


class UnsupportedPlatformError(BootstrapError):
    """The host OS (or OS/architecture pair) has no release."""


class TransportError(BootstrapError):
    """The HTTP request could not be completed."""

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        """Initialize the TransportError."""
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to reach {url}: {cause}")


class DownloadError(BootstrapError):
    """The server answered with a non-success status."""

    def __init__(self, url: str, status_code: int, reason: str = "") -> None:
        """Initialize the DownloadError."""
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"Download of {url} failed with HTTP {status_code} {reason}".rstrip())

    @property
    def retryable(self) -> bool:
        """Server-side errors may go away, client errors will not."""
        return self.status_code >= 500  # noqa: PLR2004


class ArchiveError(BootstrapError):
    """The downloaded archive could not be read."""


class ArchiveEntryMissingError(ArchiveError):
    """The archive does not contain the expected binary."""

    def __init__(self, entry_name: str, archive_path: str) -> None:
        """Initialize the ArchiveEntryMissingError."""
        self.entry_name = entry_name
        self.archive_path = archive_path
        super().__init__(f"{entry_name} not found in downloaded archive {archive_path}")


class AlternateInstallError(BootstrapError):
    """The package-manager install failed."""

    def __init__(self, message: str, stderr: str = "", exit_code: int | None = None) -> None:
        """Initialize the AlternateInstallError."""
        self.stderr = stderr
        self.exit_code = exit_code
        super().__init__(f"{message}: {stderr}" if stderr else message)


class CancelledError(BootstrapError):
    """The operation was cancelled through its cancel event."""


class LockTimeoutError(BootstrapError):
    """Another process held the install lock for too long."""

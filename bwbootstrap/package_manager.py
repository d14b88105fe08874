"""Install the client through npm where no release zip fits."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, NamedTuple

from .errors import AlternateInstallError
from .utils import log

DEFAULT_CACHE_DIR = Path("/.npm")
DEFAULT_CACHE_OWNER = "99:100"


class CommandResult(NamedTuple):
    """Exit code and captured output of a finished process."""

    exit_code: int
    stdout: str
    stderr: str


Runner = Callable[[list[str]], CommandResult]


def run_command(argv: list[str], timeout: float | None = None) -> CommandResult:
    """Run a command and capture its output."""
    result = subprocess.run(  # noqa: S603
        argv,
        capture_output=True,
        text=True,
        timeout=timeout,
        check=False,
    )
    return CommandResult(result.returncode, result.stdout, result.stderr)


def repair_cache_ownership(
    cache_dir: Path,
    owner: str,
    runner: Runner = run_command,
) -> bool:
    """Try to hand the npm cache to ``owner``; failures are only reported."""
    if not cache_dir.is_dir():
        return False
    log(f"Fixing ownership of {cache_dir}", "info", "🔧")
    try:
        result = runner(["chown", "-R", owner, str(cache_dir)])
    except OSError as e:
        log(f"Could not run chown: {e}", "debug")
        return False
    if result.exit_code != 0:
        log(f"chown exited with {result.exit_code}: {result.stderr.strip()}", "debug")
        return False
    return True


def install_with_package_manager(
    package: str,
    *,
    runner: Runner = run_command,
    cache_dir: Path = DEFAULT_CACHE_DIR,
    owner: str = DEFAULT_CACHE_OWNER,
    npm: str = "npm",
) -> CommandResult:
    """Install ``package`` globally with npm.

    Raises:
        AlternateInstallError: npm could not be started or exited nonzero

    """
    log(f"Installing {package} using {npm}...", "info", "📦")
    repair_cache_ownership(cache_dir, owner, runner)

    try:
        result = runner([npm, "install", "-g", package])
    except OSError as e:
        msg = f"Could not run {npm}"
        raise AlternateInstallError(msg, stderr=str(e)) from e
    if result.exit_code != 0:
        msg = f"Error installing {package} with {npm}"
        raise AlternateInstallError(msg, stderr=result.stderr, exit_code=result.exit_code)

    if result.stdout.strip():
        log(result.stdout.strip())
    log(f"{package} successfully installed with {npm}", "success", "✅")
    return result

"""Advisory lock serializing installs into one directory."""

from __future__ import annotations

import contextlib
import os
import threading
import time
from collections.abc import Iterator
from pathlib import Path

from .errors import LockTimeoutError
from .utils import check_cancelled, log


def _try_acquire(path: Path) -> bool:
    try:
        fd = os.open(str(path), os.O_CREAT | os.O_EXCL | os.O_WRONLY)
    except FileExistsError:
        return False
    with os.fdopen(fd, "w") as f:
        f.write(str(os.getpid()))
    return True


def _read_owner(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError):
        return None


def _pid_alive(pid: int) -> bool | None:
    """Whether ``pid`` exists; None when that cannot be told on this OS."""
    # os.kill on Windows terminates the target instead of probing it
    if os.name != "posix":
        return None
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError:
        return None
    return True


def is_stale(path: Path, max_age: float) -> bool:
    """Check if a lock file was left behind by a process that is gone.

    The pid written into the lock decides where it can be checked. Otherwise a
    lock older than ``max_age`` seconds counts as abandoned.
    """
    owner = _read_owner(path)
    if owner is not None and owner.isdigit():
        alive = _pid_alive(int(owner))
        if alive is not None:
            return not alive
    try:
        age = time.time() - path.stat().st_mtime
    except FileNotFoundError:
        return False
    return age > max_age


def _break_stale_lock(path: Path, max_age: float) -> bool:
    owner = _read_owner(path)
    if not is_stale(path, max_age):
        return False
    # Only remove the lock we inspected, not one a new owner just created.
    if _read_owner(path) != owner:
        return False
    log(f"Removing stale install lock {path} (owner {owner or 'unknown'})", "warning", "🔓")
    path.unlink(missing_ok=True)
    return True


@contextlib.contextmanager
def install_lock(
    path: Path,
    *,
    timeout: float = 120.0,
    poll: float = 0.2,
    cancel_event: threading.Event | None = None,
) -> Iterator[Path]:
    """Hold ``path`` as a lock file for the duration of the block.

    A lock whose owning process no longer exists, or which is older than
    ``timeout`` when its owner cannot be checked, is taken over.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    deadline = time.monotonic() + timeout
    waiting = False
    while not _try_acquire(path):
        if _break_stale_lock(path, timeout):
            continue
        check_cancelled(cancel_event, "Waiting for install lock")
        if time.monotonic() >= deadline:
            msg = f"Timed out after {timeout:.0f}s waiting for {path}"
            raise LockTimeoutError(msg)
        if not waiting:
            log(f"Waiting for another install to release {path}", "warning", "⏳")
            waiting = True
        if cancel_event is not None:
            cancel_event.wait(poll)
        else:
            time.sleep(poll)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)

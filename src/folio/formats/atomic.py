# ABOUTME: Crash-safe file replacement through a same-directory temporary file.
# ABOUTME: Also serializes concurrent rewrites of one path with a reference-counted lock table.

import logging
import os
import shutil
import tempfile
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

Verifier = Callable[[Path], None]


class _PathLockTable:
    """One re-entrant lock per resolved path, created on demand and dropped when unused."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, tuple[threading.RLock, int]] = {}

    @contextmanager
    def hold(self, path: Path) -> Iterator[None]:
        key = os.path.realpath(path)
        with self._guard:
            lock, refs = self._entries.get(key, (threading.RLock(), 0))
            self._entries[key] = (lock, refs + 1)
        try:
            with lock:
                yield
        finally:
            with self._guard:
                lock, refs = self._entries[key]
                if refs <= 1:
                    del self._entries[key]
                else:
                    self._entries[key] = (lock, refs - 1)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


_LOCKS = _PathLockTable()


@contextmanager
def locked(path: Path) -> Iterator[None]:
    """Hold the rewrite lock for `path` across a read-modify-write sequence."""
    with _LOCKS.hold(Path(path)):
        yield


def active_lock_count() -> int:
    """Number of paths currently held or awaited by a writer."""
    return len(_LOCKS)


def _temp_path_for(target: Path, label: str) -> Path:
    handle = tempfile.NamedTemporaryFile(
        prefix=f".{target.stem}.",
        suffix=f"{target.suffix}.{label}",
        dir=str(target.parent),
        delete=False,
    )
    handle.close()
    return Path(handle.name)


def _copy_install(tmp_path: Path, target: Path) -> None:
    """Overwrite target with tmp_path's bytes, restoring a backup on failure."""
    backup = _temp_path_for(target, "bak")
    try:
        shutil.copy2(target, backup)
    except OSError:
        backup.unlink(missing_ok=True)
        raise

    try:
        shutil.copyfile(tmp_path, target)
    except OSError:
        logger.error("Copy over %s failed, restoring original", target)
        shutil.copy2(backup, target)
        backup.unlink(missing_ok=True)
        raise
    backup.unlink(missing_ok=True)


def install(tmp_path: Path, target: Path) -> None:
    """Move tmp_path over target, atomically when the filesystem allows it."""
    try:
        os.replace(tmp_path, target)
        return
    except OSError as exc:
        logger.warning("Atomic replace of %s failed (%s), falling back to copy", target, exc)
    _copy_install(tmp_path, target)


@contextmanager
def atomic_write(target: Path, *, verify: Verifier | None = None) -> Iterator[Path]:
    """Yield a temporary path next to `target` and install it on success.

    The caller writes the complete new file to the yielded path. When the
    block exits cleanly, `verify` (if given) is called with the temporary
    path, the original's permission bits are copied over, and the file is
    installed. On any exception the temporary file is removed and the
    original is left as it was. Writers of the same path are serialized.
    """
    target = Path(target)
    with _LOCKS.hold(target):
        tmp_path = _temp_path_for(target, "tmp")
        try:
            yield tmp_path
            if verify is not None:
                verify(tmp_path)
            shutil.copymode(target, tmp_path)
            install(tmp_path, target)
        finally:
            tmp_path.unlink(missing_ok=True)

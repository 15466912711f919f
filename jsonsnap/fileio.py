"""Atomic file replacement and per-file locks.

Writes go to a dot-prefixed temp file in the destination directory and are
moved into place with os.replace, so readers see either the old or the new
content. Locks are process-wide and keyed by resolved path; they serialize
backup -> write and backup -> restore sequences on one tracked file.
"""

import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path

TEMP_PREFIX = ".jsonsnap-"

_locks = {}
_locks_guard = threading.Lock()


def atomic_write(path, data, mode=None):
    """Replace path with data (bytes) via temp file + rename.

    Without an explicit mode the replaced file keeps its permissions;
    new files get 0o644 (mkstemp would leave 0o600).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if mode is None:
        mode = path.stat().st_mode & 0o777 if path.exists() else 0o644
    fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=".tmp", dir=path.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp.chmod(mode)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    return path


def _lock_for(path):
    key = str(Path(path).resolve())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.RLock()
        return lock


@contextmanager
def file_lock(path):
    """Hold the process-wide lock for path."""
    lock = _lock_for(path)
    with lock:
        yield

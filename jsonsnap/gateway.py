"""Writes to tracked files go through here.

Each write snapshots the current file first. If the write itself fails, the
snapshot's content is put back once (no retry loop) and the caller learns
whether that worked. This is best-effort rollback, not a transaction.
"""

import json

from jsonsnap.errors import JsonsnapError, MutationError, NotFoundError
from jsonsnap.fileio import atomic_write, file_lock
from jsonsnap.log import warn, write_log

SITE_INFO = "brandInfo"
SITE_INFO_MODE = 0o644


def encode_json(data):
    return (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


class MutationGateway:

    def __init__(self, store, tracked):
        self.store = store
        self.tracked = tracked

    def read_json(self, tracked_name):
        path = self.tracked.path(tracked_name)
        if not path.is_file():
            raise NotFoundError(f"{path} not found")
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path.name}: {e}")

    def write(self, tracked_name, content, mode=None):
        """Back up, then replace a tracked file.

        content may be bytes, str, or any JSON-serializable value.
        Returns {"target", "backupCreated", "backupError"}.
        Raises MutationError when the write fails.
        """
        path = self.tracked.path(tracked_name)
        if isinstance(content, str):
            data = content.encode("utf-8")
        elif isinstance(content, bytes):
            data = content
        else:
            data = encode_json(content)

        with file_lock(path):
            backup = None
            backup_error = None
            if path.exists():
                try:
                    backup = self.store.create(path)
                except JsonsnapError as e:
                    backup_error = str(e)
                    warn(f"Could not back up {path.name} before writing, continuing without a backup: {e}")

            try:
                atomic_write(path, data, mode=mode)
            except OSError as e:
                rolled_back = self._roll_back(path, backup)
                write_log({
                    "event": "mutation_failed",
                    "target": str(path),
                    "error": str(e),
                    "backup": backup.name if backup else None,
                    "rolled_back": rolled_back,
                })
                raise MutationError(
                    f"Cannot write {path.name}: {e}",
                    backup=backup.name if backup else None,
                    rolled_back=rolled_back,
                ) from e

        write_log({
            "event": "mutation_written",
            "target": str(path),
            "size": len(data),
            "backup": backup.name if backup else None,
        })
        return {
            "target": str(path),
            "backupCreated": backup.name if backup else None,
            "backupError": backup_error,
        }

    def update_site_info(self, payload):
        """Replace brandInfo.json with a JSON object."""
        if not isinstance(payload, dict):
            raise ValueError("Site info must be a JSON object")
        return self.write(SITE_INFO, payload, mode=SITE_INFO_MODE)

    def _roll_back(self, path, backup):
        """Put the pre-write snapshot back once. Returns True on success."""
        if backup is None:
            return False
        try:
            atomic_write(path, backup.read_bytes())
        except OSError as e:
            warn(f"Rollback of {path.name} from {backup.name} failed: {e}")
            return False
        return True

from datetime import datetime, timedelta, timezone
from pathlib import Path

from jsonsnap.errors import NotFoundError, SnapshotIOError
from jsonsnap.fileio import atomic_write, file_lock
from jsonsnap.log import warn, write_log
from jsonsnap.snapshot.base import SnapshotStore
from jsonsnap.snapshot.naming import parse_snapshot_name, snapshot_name

DEFAULT_KEEP = 5


def _utcnow():
    return datetime.now(timezone.utc)


def check_name(name):
    """Snapshot names are plain file names inside the store."""
    if not name or name in (".", "..") or "/" in name or "\\" in name or name.startswith("."):
        raise ValueError(f"Invalid snapshot name: {name!r}")
    return name


class LocalSnapshotStore(SnapshotStore):
    """Snapshots as files in one flat directory.

    The directory listing is the index: nothing is cached, every call
    re-reads the disk. The directory is created on first write.
    """

    def __init__(self, root, tracked=None, keep=DEFAULT_KEEP):
        self.root = Path(root)
        self.tracked = tracked
        self.keep = keep

    def create(self, source_path, reason=""):
        source = Path(source_path)
        if not source.is_file():
            raise NotFoundError(f"Cannot back up {source}: file not found")

        with file_lock(source):
            try:
                self.root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise SnapshotIOError(f"Cannot create snapshot directory {self.root}: {e}") from e
            try:
                content = source.read_bytes()
            except OSError as e:
                raise SnapshotIOError(f"Cannot read {source}: {e}") from e

            try:
                moment = self._next_moment(source.name)
            except OSError as e:
                raise SnapshotIOError(f"Cannot list snapshot directory {self.root}: {e}") from e
            name = snapshot_name(source.name, reason, moment)

            snapshot_path = self.root / name
            try:
                atomic_write(snapshot_path, content)
            except OSError as e:
                raise SnapshotIOError(f"Cannot write snapshot {snapshot_path}: {e}") from e

            write_log({
                "event": "backup_created",
                "source": str(source),
                "snapshot": name,
                "size": len(content),
            })
            self.cleanup(source.name)

        return snapshot_path

    def cleanup(self, base_name, keep=None):
        keep = self.keep if keep is None else keep
        if keep < 1:
            raise ValueError(f"keep must be at least 1, got {keep}")

        try:
            names = sorted(self._retention_set(base_name), reverse=True)
        except OSError as e:
            # the new snapshot is already written; pruning waits for the next backup
            write_log({"event": "cleanup_failed", "file": base_name, "error": str(e)})
            warn(f"Could not list snapshots of {base_name} for cleanup: {e}")
            return []
        deleted = []
        for name in names[keep:]:
            try:
                (self.root / name).unlink()
            except OSError as e:
                write_log({"event": "cleanup_failed", "snapshot": name, "error": str(e)})
                warn(f"Could not delete old snapshot {name}: {e}")
                continue
            deleted.append(name)

        if deleted:
            write_log({"event": "backup_pruned", "file": base_name, "deleted": deleted})
        return deleted

    def read(self, name):
        path = self.path(name)
        if not path.is_file():
            raise NotFoundError(f"Snapshot {name} not found")
        try:
            return path.read_bytes()
        except OSError as e:
            raise SnapshotIOError(f"Cannot read snapshot {name}: {e}") from e

    def list(self, tracked_name=None):
        snapshots = []
        for name in self._names():
            try:
                snapshot = self.describe(name)
            except FileNotFoundError:
                # removed between listing and stat
                continue
            if tracked_name and snapshot["tracked"] != tracked_name:
                continue
            snapshots.append(snapshot)

        timestamped = [s for s in snapshots if s["timestamped"]]
        legacy = [s for s in snapshots if not s["timestamped"]]
        timestamped.sort(key=lambda s: s["filename"], reverse=True)
        legacy.sort(key=lambda s: s["mtime"], reverse=True)
        return timestamped + legacy

    def describe(self, name):
        """Catalog entry for one snapshot file."""
        path = self.path(name)
        stat = path.stat()
        parsed = parse_snapshot_name(name, self._known_bases())

        if parsed:
            moment = parsed["timestamp"]
            original = parsed["original"]
            reason = parsed["reason"]
            tracked_name = self.tracked.name_for_base(original) if self.tracked else None
        else:
            moment = datetime.fromtimestamp(stat.st_mtime, timezone.utc)
            original = name
            reason = ""
            tracked_name = None

        return {
            "filename": name,
            "path": str(path),
            "size": stat.st_size,
            "date": moment.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "displayDate": moment.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
            "original": original,
            "reason": reason,
            "tracked": tracked_name,
            "category": tracked_name or "other",
            "timestamped": parsed is not None,
            "mtime": stat.st_mtime,
        }

    def delete(self, name):
        path = self.path(name)
        if not path.is_file():
            raise NotFoundError(f"Snapshot {name} not found")
        try:
            path.unlink()
        except OSError as e:
            raise SnapshotIOError(f"Cannot delete snapshot {name}: {e}") from e
        write_log({"event": "snapshot_deleted", "snapshot": name})

    def path(self, name):
        return self.root / check_name(name)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _names(self):
        """Snapshot file names; temp files from in-flight writes are dot-prefixed and skipped."""
        if not self.root.is_dir():
            return []
        return [
            entry.name for entry in self.root.iterdir()
            if entry.is_file() and not entry.name.startswith(".")
        ]

    def _known_bases(self, extra=None):
        bases = set(self.tracked.base_names()) if self.tracked else set()
        if extra:
            bases.add(extra)
        return tuple(bases)

    def _next_moment(self, base_name):
        """Now, or 1ms past the newest snapshot of base_name if that is not later.

        Keeps names of one file strictly increasing even for backups taken
        within the same millisecond.
        """
        now = _utcnow()
        now = now.replace(microsecond=now.microsecond // 1000 * 1000)
        known = self._known_bases(base_name)
        stamps = [parse_snapshot_name(name, known)["timestamp"] for name in self._retention_set(base_name)]
        if stamps and max(stamps) >= now:
            return max(stamps) + timedelta(milliseconds=1)
        return now

    def _retention_set(self, base_name):
        known = self._known_bases(base_name)
        result = []
        for name in self._names():
            parsed = parse_snapshot_name(name, known)
            if parsed and parsed["original"] == base_name:
                result.append(name)
        return result

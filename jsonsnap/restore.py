"""Restore a snapshot over its tracked file.

Order matters: the chosen snapshot is read, the current content is
snapshotted (reason "pre_restore_") so the restore can itself be undone,
and only then is the snapshot moved into place atomically. When the
safety snapshot cannot be taken the restore still goes ahead, but the
result says so in backupError and a warning is printed.
"""

from jsonsnap.errors import JsonsnapError, NotFoundError, SnapshotIOError
from jsonsnap.fileio import atomic_write, file_lock
from jsonsnap.log import warn, write_log
from jsonsnap.snapshot.naming import PRE_RESTORE


def restore_snapshot(store, tracked, snapshot_name, target=None):
    """Copy a snapshot back over a tracked file.

    Args:
        store: snapshot store holding snapshot_name.
        tracked: TrackedFiles registry.
        snapshot_name: file name inside the store.
        target: logical tracked name; inferred from the snapshot name if omitted.

    Returns a dict with snapshot, target, tracked, backupCreated and backupError.

    Raises NotFoundError (missing snapshot or unknown target),
    ClassificationError (target cannot be inferred), SnapshotIOError.
    """
    snapshot_path = store.path(snapshot_name)
    if not snapshot_path.is_file():
        raise NotFoundError(f"Snapshot {snapshot_name} not found")

    tracked_name = target or tracked.resolve(snapshot_name)
    target_path = tracked.path(tracked_name)

    with file_lock(target_path):
        # Read before the safety snapshot: its retention pass may prune this very snapshot
        content = store.read(snapshot_name)

        backup_created = None
        backup_error = None
        if target_path.exists():
            try:
                backup_created = store.create(target_path, reason=PRE_RESTORE).name
            except JsonsnapError as e:
                backup_error = str(e)
                warn(f"Pre-restore snapshot of {target_path.name} failed, restoring without a safety copy: {e}")

        try:
            atomic_write(target_path, content)
        except OSError as e:
            raise SnapshotIOError(f"Cannot write {target_path}: {e}") from e

    write_log({
        "event": "restored",
        "snapshot": snapshot_name,
        "target": str(target_path),
        "pre_restore": backup_created,
        "pre_restore_error": backup_error,
    })
    return {
        "snapshot": snapshot_name,
        "target": str(target_path),
        "tracked": tracked_name,
        "backupCreated": backup_created,
        "backupError": backup_error,
    }

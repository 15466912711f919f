OTHER = "other"


def group_snapshots(snapshots, tracked):
    """Bucket catalog entries by category.

    Tracked files come first in registry order, then "other". Empty buckets
    are dropped; order inside a bucket is kept (newest first from list()).
    """
    groups = {name: [] for name in tracked}
    groups[OTHER] = []
    for snapshot in snapshots:
        groups.setdefault(snapshot["category"], []).append(snapshot)
    return {name: items for name, items in groups.items() if items}


def restorable(snapshots):
    """Only entries that classify to a tracked file can be restored."""
    return [s for s in snapshots if s["tracked"]]


def format_size(size):
    return f"{size / 1024:.2f} KB"

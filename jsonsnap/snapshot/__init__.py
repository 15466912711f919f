from jsonsnap.snapshot.local import LocalSnapshotStore


def create_snapshot_store(config, tracked=None):
    """Create a snapshot store from config.

    Config keys:
        snapshot_backend: "local" (default)
        backup_dir: snapshot directory (absolute, see load_config)
        keep: snapshots retained per tracked file
    """
    backend = config.get("snapshot_backend", "local")

    if backend == "local":
        if tracked is None:
            from jsonsnap.tracked import TrackedFiles
            tracked = TrackedFiles.from_config(config)
        return LocalSnapshotStore(config["backup_dir"], tracked=tracked, keep=config.get("keep", 5))

    raise ValueError(f"Unknown snapshot backend: {backend!r}. Use 'local'.")

from abc import ABC, abstractmethod


class SnapshotStore(ABC):
    """Base interface for snapshot backends.

    Implementations: LocalSnapshotStore (a flat directory of snapshot files).
    """

    @abstractmethod
    def create(self, source_path, reason=""):
        """Snapshot a file. Returns the snapshot path."""
        pass

    @abstractmethod
    def read(self, name):
        """Return a snapshot's bytes."""
        pass

    @abstractmethod
    def list(self, tracked_name=None):
        """List snapshots newest first. Filter to one tracked file if given."""
        pass

    @abstractmethod
    def delete(self, name):
        """Delete a snapshot by name."""
        pass

    @abstractmethod
    def cleanup(self, base_name, keep=None):
        """Trim a file's snapshots to the newest keep. Returns deleted names."""
        pass

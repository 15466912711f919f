from pathlib import Path

from jsonsnap.errors import ClassificationError, NotFoundError
from jsonsnap.snapshot.naming import parse_snapshot_name


class TrackedFiles:
    """Registry of the JSON data files that are snapshotted before they change.

    Maps a logical name ("articles") to an absolute path. Snapshots are
    classified by their parsed base name, compared exactly, never by
    substring.
    """

    def __init__(self, data_dir, files):
        self.data_dir = Path(data_dir).resolve()
        self._files = {name: self.data_dir / file_name for name, file_name in files.items()}

    @classmethod
    def from_config(cls, config):
        return cls(config["data_dir"], config["tracked"])

    def __iter__(self):
        return iter(self._files)

    def __contains__(self, name):
        return name in self._files

    def items(self):
        return self._files.items()

    def path(self, name):
        """Absolute path of a tracked file. Raises NotFoundError for unknown names."""
        try:
            return self._files[name]
        except KeyError:
            known = ", ".join(self._files)
            raise NotFoundError(f"Unknown tracked file {name!r} (known: {known})")

    def base_names(self):
        return tuple(path.name for path in self._files.values())

    def name_for_base(self, base_name):
        """Logical name whose file is called base_name, or None."""
        for name, path in self._files.items():
            if path.name == base_name:
                return name
        return None

    def classify(self, snapshot_name):
        """Logical name a snapshot belongs to, or None."""
        parsed = parse_snapshot_name(snapshot_name, self.base_names())
        if parsed is None:
            return None
        return self.name_for_base(parsed["original"])

    def resolve(self, snapshot_name):
        """Like classify, but raises ClassificationError when nothing matches."""
        name = self.classify(snapshot_name)
        if name is None:
            raise ClassificationError(f"Snapshot {snapshot_name!r} does not belong to a tracked file")
        return name

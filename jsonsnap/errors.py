class JsonsnapError(Exception):
    """Base class for jsonsnap failures."""


class NotFoundError(JsonsnapError):
    """A source file, snapshot, or restore target does not exist."""


class SnapshotIOError(JsonsnapError):
    """Reading or writing a data file or snapshot failed."""


class ClassificationError(JsonsnapError):
    """A snapshot name does not belong to any tracked file."""


class MutationError(JsonsnapError):
    """Writing a tracked file failed.

    Carries the snapshot taken before the write (if any) and whether its
    content was put back.
    """

    def __init__(self, message, backup=None, rolled_back=False):
        super().__init__(message)
        self.backup = backup
        self.rolled_back = rolled_back

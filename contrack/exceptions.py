"""Custom exceptions for contrack."""


class ContrackError(Exception):
    """Base exception for all contrack errors."""

    pass


class NotFoundError(ContrackError):
    """A referenced repository, contribution, loadout or file does not exist."""

    pass


class ValidationError(ContrackError):
    """A request was rejected before any mutation took place."""

    pass


class StorageError(ContrackError):
    """Filesystem or database access failed."""

    pass


class ExternalToolError(ContrackError):
    """Reading version-control history failed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read git repository at {path}: {reason}")

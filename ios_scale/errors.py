"""Exception types raised at the save, delete and export boundaries."""


class IOSScaleError(Exception):
    """Base class for engine errors."""


class StorageError(IOSScaleError):
    """A save, append or delete against the database failed."""


class SessionNotFoundError(StorageError, LookupError):
    """The requested session does not exist."""


class SerializationError(IOSScaleError):
    """An export could not be encoded."""

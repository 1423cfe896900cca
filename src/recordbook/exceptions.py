class RecordbookError(Exception):
    """Base class for exceptions in this module."""


class ValidationError(RecordbookError):
    """Raised when a record field fails its constraint."""


class DuplicateKeyError(RecordbookError):
    """Raised when an identifier is already taken by another record."""


class NotFoundError(RecordbookError):
    """Raised when an update refers to an identifier that is not stored."""


class PersistenceError(RecordbookError):
    """Raised when the backing file cannot be written."""


class ParseError(RecordbookError):
    """Raised when a stored line cannot be decoded into a record."""

"""Domain-level exceptions.

All failures a catalog operation can report are subclasses of
DomainException so the CLI layer can catch them uniformly and display
user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """Input was malformed or a business rule was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ConflictError(DomainException):
    """The stored document changed since the caller last read it."""


class StoreUnavailableError(DomainException):
    """The blob store has not finished initializing."""


class StorageIOError(DomainException):
    """A blob or document could not be read, written or deleted."""

"""Error taxonomy for the to-do list.

Every failure here is local and recoverable: validation and no-op signals
become transient messages, persistence problems are logged and the in-memory
list stays authoritative.
"""


class TodoError(Exception):
    """Base class for to-do list errors."""


class ValidationError(TodoError):
    """Rejected input, e.g. empty or whitespace-only task text."""


class NoOpWarning(TodoError):
    """The requested operation had nothing to act on."""


class PersistenceCorruption(TodoError):
    """The stored blob could not be parsed into a task list."""


class PersistenceWriteFailure(TodoError):
    """The blob store refused a write (I/O error, quota exceeded)."""

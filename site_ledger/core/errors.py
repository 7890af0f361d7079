"""
Typed errors for ledger operations.

Every error carries a machine-readable ``code`` so callers can branch on the
type instead of parsing messages.
"""

from typing import Any, Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""
    code: str = "LEDGER_ERROR"


class InvalidInput(LedgerError, ValueError):
    """A value is non-finite, negative, or empty where it must not be."""
    code = "INVALID_INPUT"

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class DuplicateName(LedgerError):
    """A project name collides case-insensitively with an existing project."""
    code = "DUPLICATE_NAME"

    def __init__(self, name: str):
        super().__init__(f"A project named '{name}' already exists")
        self.name = name


class NotFound(LedgerError, LookupError):
    """A project id or entry index does not exist."""
    code = "NOT_FOUND"


class NothingToUndo(LedgerError):
    """Undo or redo was requested with an empty history."""
    code = "NOTHING_TO_UNDO"

"""
Error types raised (or recorded) by the review engine.
"""

from __future__ import annotations

from typing import Optional


class RecallError(Exception):
    """Base class for all review engine errors."""


class NotFound(RecallError, KeyError):
    """An operation referenced an item id that does not exist."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(item_id)

    def __str__(self) -> str:
        return f"Item not found: {self.item_id}"


class ValidationError(RecallError, ValueError):
    """Malformed settings, item data or import payload."""

    def __init__(self, message: str, errors: Optional[list[dict]] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, exc, context: str) -> "ValidationError":
        """Wrap a pydantic ValidationError, keeping its per-field details."""
        details = exc.errors()
        fields = ", ".join(
            ".".join(str(part) for part in err.get("loc", ())) or "<root>"
            for err in details
        )
        return cls(f"Invalid {context}: {fields}", errors=details)


class PersistenceWarning(RecallError, RuntimeWarning):
    """
    The store failed to save or load.

    Never raised by the engine: the in-memory operation still succeeds and
    the warning is logged and kept in ReviewEngine.warnings.
    """

    def __init__(self, operation: str, key: str, cause: BaseException):
        self.operation = operation
        self.key = key
        self.cause = cause
        super().__init__(f"Store {operation} failed for {key!r}: {cause}")

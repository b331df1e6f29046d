"""
Traceman Exceptions.

All traceman errors derive from TraceError for consistent handling.
"""

from typing import Any


class TraceError(Exception):
    """
    Base exception for all Traceman errors.

    Usage:
        raise TraceError('STORE_FAILED', operation='save_schedule')

    Attributes:
        code: Error code (INVALID_TRANSITION, RECIPE_NOT_FOUND, etc.)
        details: Additional context as keyword arguments
    """

    def __init__(self, code: str, message: str | None = None, **details: Any):
        self.code = code
        self.details = details
        self.message = message or code
        super().__init__(self.message)

    def as_dict(self) -> dict:
        """Return error as dictionary for API responses."""
        return {"code": self.code, "message": self.message, **self.details}

    def __str__(self) -> str:
        if self.message != self.code:
            return self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{type(self).__name__}({self.code}: {details_str})"
        return f"{type(self).__name__}({self.code})"


class TraceValidationError(TraceError):
    """Operation rejected before any mutation (bad transition, bad field)."""


class ReferentialError(TraceError):
    """A schedule item points at a recipe the recipe store does not know."""


class PersistenceError(TraceError):
    """The document store failed; in-memory state was reverted."""


# Common error codes
# INVALID_TRANSITION: Status transition not allowed
# NOT_EDITABLE: Item or field cannot be edited in its current status
# UNKNOWN_FIELD: Patch names a field that cannot be edited
# INVALID_VALUE: Field value fails validation
# ITEM_NOT_FOUND: No schedule item with that id
# RECIPE_NOT_FOUND: Recipe does not exist for the item's recipe code
# STORE_FAILED: Document store call failed

"""Custom exceptions for engine logic."""

from __future__ import annotations


class MissingRequiredContextError(Exception):
    """Raised when a mode-specific mandatory context field is absent.

    Compilation aborts before any generation call is made.
    """

    def __init__(self, message: str, *, mode: str, field: str) -> None:
        super().__init__(message)
        self.mode = mode
        self.field = field

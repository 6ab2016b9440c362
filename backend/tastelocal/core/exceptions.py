# FILE: backend/tastelocal/core/exceptions.py
# TASTELOCAL - ERROR TAXONOMY
# NotFound and WriteError are surfaced to callers untouched; the store performs
# exactly one recovery step (local rollback) before re-raising a WriteError.

from typing import Optional


class TasteLocalError(Exception):
    """Base class for every error raised by the sync layer."""


class NotFoundError(TasteLocalError):
    """The requested aggregate or document does not exist."""


class WriteError(TasteLocalError):
    """The remote persistence step failed (network, permission, conflict)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class MutationValidationError(TasteLocalError):
    """A mutation was rejected before any optimistic update was applied."""

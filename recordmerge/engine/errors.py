"""Exceptions raised when a merge cannot proceed."""
from __future__ import annotations

from typing import Optional


class MergeError(Exception):
    """Base class for merge validation failures.

    ``path`` is the qualified path of the nested record where the failure
    surfaced, empty for the top-level records.
    """

    default_message = "merge failed"

    def __init__(self, message: Optional[str] = None, *, path: str = "") -> None:
        self.message = message or self.default_message
        self.path = path
        super().__init__(f"{self.message} (at {path!r})" if path else self.message)


class InvalidDestinationError(MergeError):
    default_message = "destination must be a record"


class InvalidSourceError(MergeError):
    default_message = "source must be a record"


class TypeMismatchError(MergeError):
    default_message = "source and destination types do not match"

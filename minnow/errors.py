"""Exceptions tagged with the operation that failed, and small checking helpers."""

from __future__ import annotations

import os
from typing import TypeVar

T = TypeVar("T")


class TaggedError(RuntimeError):
    """An error carrying the attempted operation, an error code and its description."""

    def __init__(self, attempt: str, error_code: int, message: str) -> None:
        self.attempt = attempt
        self.error_code = error_code
        self.message = message
        super().__init__(f"{attempt}: {message}")


class UnixError(TaggedError):
    """A failed operating-system call, described by its error number."""

    def __init__(self, attempt: str, error_code: int) -> None:
        super().__init__(attempt, error_code, os.strerror(error_code))


def check_system_call(attempt: str, return_value: int) -> int:
    """Return a non-negative result unchanged, otherwise raise UnixError.

    A negative return value is taken to carry the negated error number.
    """
    if return_value >= 0:
        return return_value
    raise UnixError(attempt, -return_value)


def notnull(context: str, value: T | None) -> T:
    """Return ``value``, raising RuntimeError if it is None."""
    if value is None:
        raise RuntimeError(f"{context}: returned null pointer")
    return value
"""Exceptions for failed system and library calls."""

from __future__ import annotations

import os
from typing import TypeVar

T = TypeVar("T")


class TaggedError(OSError):
    """A failed call, described by what was attempted and why it failed."""

    def __init__(self, attempt: str, error_code: int, message: str) -> None:
        super().__init__(error_code, message)
        self.attempt = attempt
        self.error_code = error_code
        self.message = message

    def __str__(self) -> str:
        return f"{self.attempt}: {self.message}"


class UnixError(TaggedError):
    """A failed system call, described by its errno value."""

    def __init__(self, attempt: str, errno_value: int) -> None:
        super().__init__(attempt, errno_value, os.strerror(errno_value))


def check_system_call(attempt: str, return_value: int) -> int:
    """Return ``return_value`` if it is non-negative, else raise UnixError.

    A negative value is taken as a negated errno value.
    """
    if return_value >= 0:
        return return_value
    raise UnixError(attempt, -return_value)


def not_null(context: str, value: T | None) -> T:
    """Return ``value``, or raise ValueError if it is None."""
    if value is None:
        raise ValueError(f"{context}: returned null pointer")
    return value
"""
Error types for when.

Every failure in parsing, evaluation or zone resolution is raised as a
subclass of WhenError so callers can render a message and bail out.
"""

from typing import FrozenSet, Iterable


class WhenError(Exception):
    """Base class for all expression and zone errors."""


class GrammarError(WhenError):
    """The input does not match the expression grammar."""

    def __init__(self, position: int, expected: Iterable[str], found: str):
        self.position = position
        self.expected: FrozenSet[str] = frozenset(expected)
        self.found = found
        super().__init__(self._format())

    def _format(self) -> str:
        expected = ", ".join(sorted(self.expected))
        if self.found and expected:
            detail = f"unexpected {self.found}; expected {expected}"
        elif self.found:
            detail = f"unexpected {self.found}"
        elif expected:
            detail = f"expected {expected}"
        else:
            detail = "unknown parsing error"
        return f"invalid syntax ({detail})"


class TrailingGarbageError(WhenError):
    """A valid expression was recognized but text remains after it."""

    def __init__(self, leftover: str):
        self.leftover = leftover
        super().__init__(f"invalid syntax (unsure how to interpret {leftover!r})")


class OutOfRangeError(WhenError):
    """A calendar field or unix timestamp is outside its valid range."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} out of range")


class UnknownZoneError(WhenError):
    """A location or timezone token could not be resolved."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"unknown timezone '{token}'")

from __future__ import annotations


class LocatorError(Exception):
    """Base class for every error raised by stablelocator."""


class InvalidInputError(LocatorError, TypeError):
    """The caller passed something that is not an element reference or valid option."""


class EvaluationError(LocatorError):
    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"Cannot evaluate {expression!r}: {reason}")
        self.expression = expression
        self.reason = reason


class RulesError(LocatorError, ValueError):
    """A stability rule table could not be loaded."""

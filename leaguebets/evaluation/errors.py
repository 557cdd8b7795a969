"""Failure taxonomy surfaced by the evaluation core.

Precondition failures carry a stable ``code`` so the admin layer can map them
to user-facing messages without parsing text. Only conflicts are retryable.
"""

from __future__ import annotations

from typing import Any


class EvaluationError(Exception):
    """Base class for expected, structured evaluation failures."""

    code = "EVALUATION_ERROR"
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Return the structured failure payload reported to callers."""
        return {
            "success": False,
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }


class EventNotFoundError(EvaluationError):
    code = "NOT_FOUND"


class MissingResultError(EvaluationError):
    code = "MISSING_RESULT"


class NoEvaluatorsError(EvaluationError):
    code = "NO_EVALUATORS"


class EvaluationConflictError(EvaluationError):
    """The event was already evaluated or a concurrent run won the race."""

    code = "CONFLICT"
    retryable = True


class InvalidEvaluatorConfigError(EvaluationError, ValueError):
    """An evaluator ``config`` blob does not match its kind's shape."""

    code = "INVALID_CONFIG"


__all__ = [
    "EvaluationError",
    "EventNotFoundError",
    "MissingResultError",
    "NoEvaluatorsError",
    "EvaluationConflictError",
    "InvalidEvaluatorConfigError",
]

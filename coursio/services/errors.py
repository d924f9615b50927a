"""Failure kinds raised by the planning services.

The HTTP layer maps each kind to one status code; services never return
partial results alongside an error.
"""


class PlanningError(Exception):
    """Base exception for all planning errors."""

    status_code = 500


class ValidationError(PlanningError):
    """Malformed input, rejected before the store is touched."""

    status_code = 400


class NotFoundError(PlanningError):
    """Course, half-day or activity is missing or belongs to another teacher."""

    status_code = 404


class ConflictError(PlanningError):
    """A uniqueness constraint refused the write."""

    status_code = 409


class OperationFailed(PlanningError):
    """A multi-step write failed and was rolled back.

    The original exception is chained as ``__cause__``.
    """

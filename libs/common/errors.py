"""Domain errors shared by the studio services.

Each error is an ``HTTPException`` so core operations can raise it directly
and FastAPI renders it without extra handlers. ``detail`` is always a dict:
``{"code": ..., "message": ..., **context}``.

Usage:
    from libs.common.errors import NotFound

    raise NotFound("Rental", rental_id)
"""

from typing import Any, Optional

from fastapi import HTTPException, status


class StudioError(HTTPException):
    """Base class for recoverable domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "STUDIO_ERROR"

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(
            status_code=self.status_code,
            detail={"code": self.code, "message": message, **context},
        )

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class InvalidTimeRange(StudioError):
    status_code = 422
    code = "INVALID_TIME_RANGE"

    def __init__(self, start_time: Any, end_time: Any):
        super().__init__(
            "end_time must be after start_time",
            start_time=str(start_time),
            end_time=str(end_time),
        )


class InvalidCreditAmount(StudioError):
    status_code = 422
    code = "INVALID_CREDIT_AMOUNT"

    def __init__(self, amount: int, message: str = "Credit amount must be positive"):
        super().__init__(message, amount=amount)


class SlotConflict(StudioError):
    status_code = status.HTTP_409_CONFLICT
    code = "SLOT_CONFLICT"

    def __init__(self, conflicting_ids: Optional[list] = None, message: Optional[str] = None):
        ids = [str(i) for i in conflicting_ids or []]
        super().__init__(
            message or "Requested time overlaps an existing rental",
            conflicting_rental_ids=ids,
        )


class NotFound(StudioError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None):
        super().__init__(
            f"{resource} not found",
            resource=resource,
            id=str(identifier) if identifier is not None else None,
        )


class AlreadyTerminal(StudioError):
    status_code = status.HTTP_409_CONFLICT
    code = "ALREADY_TERMINAL"

    def __init__(self, rental_id: Any, current_status: Any):
        value = getattr(current_status, "value", current_status)
        super().__init__(
            f"Rental is already {value}",
            rental_id=str(rental_id),
            status=value,
        )


class InactiveResource(StudioError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INACTIVE_RESOURCE"

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} is inactive", resource=resource, id=str(identifier)
        )


class InsufficientCredit(StudioError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    code = "INSUFFICIENT_CREDIT"

    def __init__(self, coach_id: Any, balance: int, required: int = 1):
        super().__init__(
            "Coach does not have enough credits",
            coach_id=str(coach_id),
            balance=balance,
            required=required,
        )


class PartialSeriesFailure(StudioError):
    status_code = status.HTTP_207_MULTI_STATUS
    code = "PARTIAL_SERIES_FAILURE"

    def __init__(self, series_id: Any, created: list, failed: list):
        self.created = created
        self.failed = failed
        super().__init__(
            f"{len(failed)} occurrence(s) could not be booked",
            series_id=str(series_id),
            created=[str(i) for i in created],
            failed=failed,
        )


class Forbidden(StudioError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"

    def __init__(self, message: str = "Not allowed to perform this action", **context: Any):
        super().__init__(message, **context)

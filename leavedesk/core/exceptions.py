from typing import Any, Dict, Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    code = "service_error"

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


# ----- Validation errors (caller-correctable) -----
class LeaveValidationError(ServiceError):
    code = "validation_error"

    def __init__(self, message: str, threshold: Optional[int] = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)
        self.threshold = threshold

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        if self.threshold is not None:
            detail["threshold"] = self.threshold
        return detail


class InvalidRange(LeaveValidationError):
    code = "invalid_range"

    def __init__(self) -> None:
        super().__init__("end_date must be on or after start_date")


class BelowMinimum(LeaveValidationError):
    code = "below_minimum"

    def __init__(self, min_days: int) -> None:
        super().__init__(f"leave_days must be greater than {min_days}", threshold=min_days)
        self.min_days = min_days


class ExceedsSemesterCap(LeaveValidationError):
    code = "exceeds_semester_cap"

    def __init__(self, school_days: int) -> None:
        super().__init__(
            f"leave_days cannot exceed the semester's {school_days} school days",
            threshold=school_days,
        )
        self.school_days = school_days


class ExceedsNaturalSpan(LeaveValidationError):
    code = "exceeds_natural_span"

    def __init__(self, span: int) -> None:
        super().__init__(f"leave_days cannot exceed the date range ({span} days)", threshold=span)
        self.span = span


class DateOverlap(LeaveValidationError):
    code = "date_overlap"

    def __init__(self, details: str = "") -> None:
        message = "Leave dates overlap an existing record"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)


class RetroactiveLimitExceeded(LeaveValidationError):
    code = "retroactive_limit_exceeded"

    def __init__(self, max_days: int) -> None:
        if max_days == 0:
            message = "Leave cannot start in the past"
        else:
            message = f"Leave may start at most {max_days} days in the past"
        super().__init__(message, threshold=max_days)
        self.max_days = max_days


# ----- Reference errors -----
class ReferenceNotFoundError(ServiceError):
    code = "not_found"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class StudentNotFound(ReferenceNotFoundError):
    code = "student_not_found"

    def __init__(self, message: str = "Student not found") -> None:
        super().__init__(message)


class SemesterNotFound(ReferenceNotFoundError):
    code = "semester_not_found"

    def __init__(self, message: str = "Semester not found") -> None:
        super().__init__(message)


class RecordNotFound(ReferenceNotFoundError):
    code = "record_not_found"

    def __init__(self, message: str = "Leave record not found") -> None:
        super().__init__(message)


# ----- State errors -----
class LeaveStateError(ServiceError):
    code = "state_conflict"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class AlreadyReviewed(LeaveStateError):
    code = "already_reviewed"

    def __init__(self) -> None:
        super().__init__("Only pending leave can be reviewed")


class AlreadyPending(LeaveStateError):
    code = "already_pending"

    def __init__(self) -> None:
        super().__init__("Leave is already pending")


class ApprovedImmutable(LeaveStateError):
    code = "approved_immutable"

    def __init__(self) -> None:
        super().__init__("Approved leave cannot be edited without a new status")


class ApprovedRecordsProtected(LeaveStateError):
    code = "approved_records_protected"

    def __init__(self) -> None:
        super().__init__("Approved leave cannot be deleted")

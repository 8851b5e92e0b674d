from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field
from typing_extensions import Annotated

from leavedesk.core.enums import LeaveStatus
from leavedesk.core.models.leave_record import REASON_MAX_LENGTH, REVIEW_REMARK_MAX_LENGTH


# ----- Create / Edit -----
class LeaveInput(BaseModel):
    """Fields shared by create and both update shapes. leave_days is declared, not derived from the dates."""

    student_id: int = Field(..., gt=0)
    semester_id: int = Field(..., gt=0)
    start_date: date
    end_date: date
    leave_days: int = Field(..., ge=1)
    reason: str = Field(..., min_length=1, max_length=REASON_MAX_LENGTH)


class LeaveCreate(LeaveInput):
    pass


class LeaveEdit(LeaveInput):
    """Plain edit. Rejected for approved records."""

    kind: Literal["edit"] = "edit"


class LeaveRestatus(LeaveInput):
    """Edit that also sets a new status; clears reviewer metadata so the record is reviewed again."""

    kind: Literal["restatus"] = "restatus"
    status: LeaveStatus


LeaveUpdate = Annotated[Union[LeaveEdit, LeaveRestatus], Field(discriminator="kind")]


# ----- Review -----
class LeaveReviewRequest(BaseModel):
    review_remark: Optional[str] = Field(None, max_length=REVIEW_REMARK_MAX_LENGTH)


# ----- Response -----
class LeaveRecordResponse(BaseModel):
    id: int
    student_id: int
    semester_id: int
    applicant_id: int
    start_date: date
    end_date: date
    leave_days: int
    reason: str
    status: LeaveStatus
    reviewer_id: Optional[int] = None
    review_time: Optional[datetime] = None
    review_remark: Optional[str] = None
    is_refund: bool
    refund_amount: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LeaveStatsResponse(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    total_refund_amount: Decimal


# ----- Batch import -----
class LeaveImportRow(BaseModel):
    """One spreadsheet/JSON row. Kept as raw strings; parsing errors become row errors, not 422s."""

    student_no: Optional[str] = None
    student_name: Optional[str] = None
    semester_name: Optional[str] = None
    grade_name: Optional[str] = None
    class_name: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    leave_days: Optional[str] = None
    reason: Optional[str] = None

    class Config:
        coerce_numbers_to_str = True


class LeaveImportRequest(BaseModel):
    leaves: List[LeaveImportRow] = Field(..., min_length=1)


class BatchRowError(BaseModel):
    row: int
    message: str


class BatchResult(BaseModel):
    created: int = 0
    failed: int = 0
    errors: List[BatchRowError] = Field(default_factory=list)
    validate_only: bool = False


# ----- Recalculation -----
class RecalculationResult(BaseModel):
    updated: int
    message: str

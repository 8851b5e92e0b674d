"""Student leave records: dates, declared leave days, review state and the derived meal refund."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from leavedesk.core.enums import LeaveStatus
from leavedesk.db.session import Base


REASON_MAX_LENGTH = 500
REVIEW_REMARK_MAX_LENGTH = 200


class LeaveRecord(Base):
    __tablename__ = "leave_records"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_leave_record_date_range"),
        CheckConstraint("leave_days >= 1", name="ck_leave_record_leave_days"),
        Index("ix_leave_records_student_semester", "student_id", "semester_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False)
    semester_id = Column(Integer, ForeignKey("semesters.id", ondelete="RESTRICT"), nullable=False, index=True)
    applicant_id = Column(Integer, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    leave_days = Column(Integer, nullable=False)
    reason = Column(String(REASON_MAX_LENGTH), nullable=False)
    status = Column(String(20), nullable=False, default=LeaveStatus.pending.value, index=True)
    reviewer_id = Column(Integer, nullable=True)
    review_time = Column(DateTime(timezone=True), nullable=True)
    review_remark = Column(Text, nullable=True)
    is_refund = Column(Boolean, nullable=False, default=True)
    refund_amount = Column(Numeric(12, 2), nullable=True)  # NULL when is_refund is false
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student", foreign_keys=[student_id])
    semester = relationship("Semester", foreign_keys=[semester_id])

    def clear_review(self) -> None:
        self.reviewer_id = None
        self.review_time = None
        self.review_remark = None

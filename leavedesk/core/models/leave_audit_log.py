"""Audit log for leave lifecycle: CREATED, APPROVED, REJECTED, REVOKED, UPDATED, RESTATUSED, DELETED."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from leavedesk.db.session import Base


class LeaveAuditLog(Base):
    __tablename__ = "leave_audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # No FK: entries outlive deleted leave records
    leave_record_id = Column(Integer, nullable=False, index=True)
    action = Column(String(50), nullable=False)
    performed_by = Column(Integer, nullable=True)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String

from leavedesk.db.session import Base


class Semester(Base):
    """
    Semester with its school-day count. school_days caps the leave_days of any
    single leave record filed against the semester.
    """

    __tablename__ = "semesters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)  # e.g. "2024-2025 Spring"
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    school_days = Column(Integer, nullable=False)
    is_current = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from leavedesk.db.session import Base


class SchoolClass(Base):
    """A class (homeroom) belongs to one grade within one semester."""

    __tablename__ = "classes"
    __table_args__ = (
        UniqueConstraint("semester_id", "grade_id", "name", name="uq_class_semester_grade_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    grade_id = Column(Integer, ForeignKey("grades.id", ondelete="RESTRICT"), nullable=False, index=True)
    semester_id = Column(Integer, ForeignKey("semesters.id", ondelete="RESTRICT"), nullable=False, index=True)
    class_teacher_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    grade = relationship("Grade")
    semester = relationship("Semester")

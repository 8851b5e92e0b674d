from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from leavedesk.db.session import Base


class Student(Base):
    """
    Student enrolled in one class. Students flagged is_nutrition_meal receive
    subsidised meals and are never refunded for leave.
    """

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_no = Column(String(30), nullable=False, unique=True)
    name = Column(String(50), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False, index=True)
    is_nutrition_meal = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

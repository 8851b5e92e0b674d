"""Meal fee configuration per class per semester."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint

from leavedesk.db.session import Base


class FeeConfig(Base):
    """Daily meal fee standard for a (class, semester) pair. Refunds are derived from meal_fee_standard."""

    __tablename__ = "fee_configs"
    __table_args__ = (
        UniqueConstraint("class_id", "semester_id", name="uq_fee_config_class_semester"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    semester_id = Column(Integer, ForeignKey("semesters.id", ondelete="RESTRICT"), nullable=False)
    meal_fee_standard = Column(Numeric(12, 2), nullable=False)  # currency per day
    prepaid_days = Column(Integer, nullable=False, default=0)
    actual_days = Column(Integer, nullable=False, default=0)
    suspension_days = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

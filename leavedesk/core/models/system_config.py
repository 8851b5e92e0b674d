from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from leavedesk.db.session import Base


class SystemConfig(Base):
    """Key/value runtime configuration, e.g. leave.min_days, leave.require_approval."""

    __tablename__ = "system_config"

    id = Column(Integer, primary_key=True, autoincrement=True)
    config_key = Column(String(100), nullable=False, unique=True)
    config_value = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

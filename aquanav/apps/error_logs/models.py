# aquanav/apps/error_logs/models.py

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, String, Text

from aquanav.database import Base


class ErrorSeverity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ErrorLog(Base):
    """Error reported by the browser client."""

    __tablename__ = "error_logs"
    __table_args__ = (
        Index("ix_error_logs_severity_resolved", "severity", "resolved"),
    )

    id = Column(Integer, primary_key=True, index=True)
    message = Column(Text, nullable=False)
    stack = Column(Text, nullable=True)
    url = Column(String(2048), nullable=True)
    user_agent = Column(String(512), nullable=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    severity = Column(
        SAEnum(ErrorSeverity, name="error_log_severity_enum", native_enum=False),
        nullable=False,
        default=ErrorSeverity.ERROR,
    )
    component = Column(String(255), nullable=True)
    resolved = Column(Boolean, nullable=False, default=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow, index=True)

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, Enum as SQLAlchemyEnum
from sqlalchemy.orm import declarative_base

from ..models import Scenario

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProcessingHistory(Base):
    """Model for tracking load email processing history"""
    __tablename__ = 'processing_history'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    request_id = Column(String(64), nullable=False, index=True)
    sender = Column(String(255))
    subject = Column(Text)
    reference = Column(String(20), index=True)
    confidence = Column(Integer, nullable=False, default=0)
    scenario = Column(SQLAlchemyEnum(Scenario), nullable=False)
    lookup_kind = Column(String(20), nullable=False)  # 'success', 'notFound', 'error', 'skipped'
    success = Column(Boolean, nullable=False)
    error_message = Column(Text)
    processing_time_ms = Column(Integer)
    processing_date = Column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self):
        return f"<ProcessingHistory(request_id='{self.request_id}', scenario='{self.scenario}', success={self.success})>"

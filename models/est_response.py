from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, func

from constants.statuses import DEFAULT_RESPONSE_STATUS
from models.base import Base, utcnow


class EstResponse(Base):
    """
    Estimating response / follow-up tracking for a project vendor:
    whether the vendor answered, when it is due and how often we chased it.
    """
    __tablename__ = "est_responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_vendor_id = Column(Integer, ForeignKey("project_vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(32), nullable=False, default=DEFAULT_RESPONSE_STATUS, server_default=DEFAULT_RESPONSE_STATUS)
    response_due_date = Column(Date, nullable=True)
    response_received_date = Column(Date, nullable=True)
    follow_up_count = Column(Integer, nullable=False, default=0, server_default="0")
    last_follow_up_date = Column(Date, nullable=True)
    response_notes = Column(Text, nullable=True)
    responded_by = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

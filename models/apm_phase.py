from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Boolean, ForeignKey, func, Index

from constants.statuses import PENDING
from models.base import Base, utcnow


class ApmPhase(Base):
    """
    One workflow stage (buy number, PO, submittals, ...) of a project vendor.
    phase_type is one of constants.statuses.PHASE_ORDER.
    """
    __tablename__ = "apm_phases"
    __table_args__ = (
        Index("ix_apm_phases_vendor_type", "project_vendor_id", "phase_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_vendor_id = Column(Integer, ForeignKey("project_vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    phase_type = Column(String(32), nullable=False)
    status = Column(String(32), nullable=False, default=PENDING, server_default=PENDING)

    requested_date = Column(Date, nullable=True)
    sent_date = Column(Date, nullable=True)
    follow_up_date = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)
    approved_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    revision_count = Column(Integer, nullable=False, default=0, server_default="0")
    last_revision_date = Column(Date, nullable=True)
    is_priority = Column(Boolean, nullable=False, default=False, server_default="false")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

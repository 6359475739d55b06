from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, ForeignKey, func, UniqueConstraint

from models.base import Base, utcnow


class ProjectVendor(Base):
    """
    Links one project to one vendor. Phases, the financial row and the
    estimating responses hang off this row by project_vendor_id.
    """
    __tablename__ = "project_vendors"
    __table_args__ = (
        UniqueConstraint("project_id", "vendor_id", name="uq_project_vendors_project_vendor"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    is_priority = Column(Boolean, nullable=False, default=False, server_default="false")
    apm_priority = Column(Boolean, nullable=False, default=False, server_default="false")
    assigned_apm_user = Column(String(64), nullable=True, index=True)
    assigned_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, func

from models.base import Base, utcnow


class ProjectFinancial(Base):
    """
    Money and procurement numbers for a project vendor (at most one row each).
    """
    __tablename__ = "project_financials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_vendor_id = Column(
        Integer,
        ForeignKey("project_vendors.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    cost_estimate = Column(Numeric(14, 2), nullable=True)
    final_quote_amount = Column(Numeric(14, 2), nullable=True)
    buy_number = Column(String(100), nullable=True)
    po_number = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

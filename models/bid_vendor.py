from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Boolean, Numeric, ForeignKey

from constants.statuses import PENDING, QUOTE_CONFIRMED
from models.base import Base


class BidVendorRow(Base):
    """
    The legacy single-row bid_vendors table. Read only when SCHEMA_MODE is
    "legacy", and as the source of the one-way import into the normalized
    tables. Column names are the LegacyBidVendor record field names.
    """
    __tablename__ = "bid_vendors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bid_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    due_date = Column(Date, nullable=True)
    response_received_date = Column(Date, nullable=True)
    status = Column(String(32), nullable=False, default=PENDING, server_default=PENDING)
    follow_up_count = Column(Integer, nullable=False, default=0, server_default="0")
    last_follow_up_date = Column(Date, nullable=True)
    response_notes = Column(Text, nullable=True)
    responded_by = Column(String(255), nullable=True)
    is_priority = Column(Boolean, nullable=False, default=False, server_default="false")
    cost_amount = Column(Numeric(14, 2), nullable=True)

    assigned_apm_user = Column(String(64), nullable=True)
    assigned_date = Column(Date, nullable=True)

    final_quote_amount = Column(Numeric(14, 2), nullable=True)
    final_quote_confirmed_date = Column(Date, nullable=True)
    final_quote_notes = Column(Text, nullable=True)

    buy_number = Column(String(100), nullable=True)
    buy_number_requested_date = Column(Date, nullable=True)
    buy_number_follow_up_date = Column(Date, nullable=True)
    buy_number_received_date = Column(Date, nullable=True)
    buy_number_notes = Column(Text, nullable=True)

    po_number = Column(String(100), nullable=True)
    po_requested_date = Column(Date, nullable=True)
    po_sent_date = Column(Date, nullable=True)
    po_follow_up_date = Column(Date, nullable=True)
    po_received_date = Column(Date, nullable=True)
    po_confirmed_date = Column(Date, nullable=True)
    po_notes = Column(Text, nullable=True)

    submittals_requested_date = Column(Date, nullable=True)
    submittals_follow_up_date = Column(Date, nullable=True)
    submittals_received_date = Column(Date, nullable=True)
    submittals_status = Column(String(32), nullable=False, default=PENDING, server_default=PENDING)
    submittals_approved_date = Column(Date, nullable=True)
    submittals_rejected_date = Column(Date, nullable=True)
    submittals_rejection_reason = Column(Text, nullable=True)
    submittals_revision_count = Column(Integer, nullable=False, default=0, server_default="0")
    submittals_last_revision_date = Column(Date, nullable=True)
    submittals_notes = Column(Text, nullable=True)

    revised_plans_requested_date = Column(Date, nullable=True)
    revised_plans_sent_date = Column(Date, nullable=True)
    revised_plans_follow_up_date = Column(Date, nullable=True)
    revised_plans_confirmed_date = Column(Date, nullable=True)
    revised_plans_notes = Column(Text, nullable=True)

    equipment_release_requested_date = Column(Date, nullable=True)
    equipment_release_follow_up_date = Column(Date, nullable=True)
    equipment_released_date = Column(Date, nullable=True)
    equipment_release_notes = Column(Text, nullable=True)

    closeout_requested_date = Column(Date, nullable=True)
    closeout_follow_up_date = Column(Date, nullable=True)
    closeout_received_date = Column(Date, nullable=True)
    closeout_approved_date = Column(Date, nullable=True)
    closeout_notes = Column(Text, nullable=True)

    apm_phase = Column(String(32), nullable=False, default=QUOTE_CONFIRMED, server_default=QUOTE_CONFIRMED)
    apm_status = Column(String(32), nullable=False, default=PENDING, server_default=PENDING)
    next_follow_up_date = Column(Date, nullable=True)
    apm_priority = Column(Boolean, nullable=False, default=False, server_default="false")
    apm_phase_updated_at = Column(DateTime(timezone=True), nullable=True)

"""
Typed records for the two bid-vendor schema generations.

``LegacyBidVendor`` is the flat ~50 field row the UI renders;
``NormalizedBidVendor`` is the relationship with its phases, financial row
and follow-ups. ``BidVendorRecord`` is the discriminated union of both; code
that accepts either goes through ``transformer.as_legacy`` /
``transformer.as_normalized`` instead of poking at fields.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from apps.reconciliation.phases import normalize_phase_type, normalize_status
from constants.statuses import PENDING, QUOTE_CONFIRMED


class PhaseRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    project_vendor_id: Optional[int] = None
    phase_type: str
    status: str = PENDING
    requested_date: Optional[date] = None
    sent_date: Optional[date] = None
    follow_up_date: Optional[date] = None
    completed_date: Optional[date] = None
    approved_date: Optional[date] = None
    notes: Optional[str] = None
    revision_count: int = 0
    last_revision_date: Optional[date] = None
    is_priority: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("phase_type", mode="before")
    def _canonical_phase_type(cls, v):
        return normalize_phase_type(v)

    @field_validator("status", mode="before")
    def _canonical_status(cls, v):
        return normalize_status(v)

    @field_validator("revision_count", mode="before")
    def _revision_count_default(cls, v):
        return 0 if v is None else v


class RelationshipRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    project_id: Optional[int] = None
    vendor_id: Optional[int] = None
    is_priority: bool = False
    apm_priority: bool = False
    assigned_apm_user: Optional[str] = None
    assigned_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FinancialRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    project_vendor_id: Optional[int] = None
    cost_estimate: Optional[Decimal] = None
    final_quote_amount: Optional[Decimal] = None
    buy_number: Optional[str] = None
    po_number: Optional[str] = None


class FollowUpRecord(BaseModel):
    """
    Estimating response row (est_responses): due date, receipt and chasing.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    project_vendor_id: Optional[int] = None
    status: str = PENDING
    response_due_date: Optional[date] = None
    response_received_date: Optional[date] = None
    follow_up_count: int = 0
    last_follow_up_date: Optional[date] = None
    response_notes: Optional[str] = None
    responded_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NormalizedBidVendor(BaseModel):
    schema_version: Literal["normalized"] = "normalized"
    relationship: RelationshipRecord
    phases: List[PhaseRecord] = Field(default_factory=list)
    financial: Optional[FinancialRecord] = None
    follow_ups: List[FollowUpRecord] = Field(default_factory=list)


class LegacyBidVendor(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    schema_version: Literal["legacy"] = "legacy"

    id: Optional[int] = None
    bid_id: Optional[int] = None
    vendor_id: Optional[int] = None
    vendor_name: Optional[str] = None
    due_date: Optional[date] = None
    response_received_date: Optional[date] = None
    status: str = PENDING
    follow_up_count: int = 0
    last_follow_up_date: Optional[date] = None
    response_notes: Optional[str] = None
    responded_by: Optional[str] = None
    is_priority: bool = False
    cost_amount: Optional[Decimal] = None

    # APM user assignment
    assigned_apm_user: Optional[str] = None
    assigned_date: Optional[date] = None

    # Quote confirmation
    final_quote_amount: Optional[Decimal] = None
    final_quote_confirmed_date: Optional[date] = None
    final_quote_notes: Optional[str] = None

    # Buy number
    buy_number: Optional[str] = None
    buy_number_requested_date: Optional[date] = None
    buy_number_follow_up_date: Optional[date] = None
    buy_number_received_date: Optional[date] = None
    buy_number_notes: Optional[str] = None

    # Purchase order
    po_number: Optional[str] = None
    po_requested_date: Optional[date] = None
    po_sent_date: Optional[date] = None
    po_follow_up_date: Optional[date] = None
    po_received_date: Optional[date] = None
    po_confirmed_date: Optional[date] = None
    po_notes: Optional[str] = None

    # Submittals
    submittals_requested_date: Optional[date] = None
    submittals_follow_up_date: Optional[date] = None
    submittals_received_date: Optional[date] = None
    submittals_status: str = PENDING
    submittals_approved_date: Optional[date] = None
    submittals_rejected_date: Optional[date] = None
    submittals_rejection_reason: Optional[str] = None
    submittals_revision_count: int = 0
    submittals_last_revision_date: Optional[date] = None
    submittals_notes: Optional[str] = None

    # Revised plans
    revised_plans_requested_date: Optional[date] = None
    revised_plans_sent_date: Optional[date] = None
    revised_plans_follow_up_date: Optional[date] = None
    revised_plans_confirmed_date: Optional[date] = None
    revised_plans_notes: Optional[str] = None

    # Equipment release
    equipment_release_requested_date: Optional[date] = None
    equipment_release_follow_up_date: Optional[date] = None
    equipment_released_date: Optional[date] = None
    equipment_release_notes: Optional[str] = None

    # Closeouts
    closeout_requested_date: Optional[date] = None
    closeout_follow_up_date: Optional[date] = None
    closeout_received_date: Optional[date] = None
    closeout_approved_date: Optional[date] = None
    closeout_notes: Optional[str] = None

    # Current phase, derived on read
    apm_phase: str = QUOTE_CONFIRMED
    apm_status: str = PENDING
    next_follow_up_date: Optional[date] = None
    apm_priority: bool = False
    apm_phase_updated_at: Optional[datetime] = None

    apm_phases: List[PhaseRecord] = Field(default_factory=list)

    @field_validator("follow_up_count", "submittals_revision_count", mode="before")
    def _count_default(cls, v):
        return 0 if v is None else v

    @field_validator("is_priority", "apm_priority", mode="before")
    def _flag_default(cls, v):
        return bool(v)


BidVendorRecord = Annotated[
    Union[LegacyBidVendor, NormalizedBidVendor],
    Field(discriminator="schema_version"),
]

bid_vendor_record_adapter = TypeAdapter(BidVendorRecord)


def parse_bid_vendor_record(data: dict) -> Union[LegacyBidVendor, NormalizedBidVendor]:
    """
    Validate a raw payload tagged with schema_version into the matching record.
    Untagged payloads are treated as legacy rows.
    """
    if "schema_version" not in data:
        data = {**data, "schema_version": "legacy"}
    return bid_vendor_record_adapter.validate_python(data)

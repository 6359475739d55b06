from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from apps.reconciliation.phases import normalize_phase_type, normalize_status
from apps.reconciliation.records import FinancialRecord, FollowUpRecord, PhaseRecord, RelationshipRecord
from constants.statuses import PENDING, PHASE_ORDER, PHASE_STATUSES


class PhaseCreate(BaseModel):
    project_vendor_id: int
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

    @field_validator("phase_type", mode="before")
    def _known_phase_type(cls, v):
        phase_type = normalize_phase_type(v)
        if phase_type not in PHASE_ORDER:
            raise ValueError(f"phase_type must be one of {', '.join(PHASE_ORDER)}")
        return phase_type

    @field_validator("status", mode="before")
    def _known_status(cls, v):
        status = normalize_status(v)
        if status not in PHASE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(PHASE_STATUSES)}")
        return status


class PhaseUpdate(BaseModel):
    status: Optional[str] = None
    requested_date: Optional[date] = None
    sent_date: Optional[date] = None
    follow_up_date: Optional[date] = None
    completed_date: Optional[date] = None
    approved_date: Optional[date] = None
    notes: Optional[str] = None
    revision_count: Optional[int] = None
    last_revision_date: Optional[date] = None
    is_priority: Optional[bool] = None

    @field_validator("status", mode="before")
    def _known_status(cls, v):
        if v is None:
            return v
        status = normalize_status(v)
        if status not in PHASE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(PHASE_STATUSES)}")
        return status


class CurrentPhase(BaseModel):
    phase_type: str
    status: str
    next_follow_up_date: Optional[date] = None
    updated_at: Optional[datetime] = None


class ProjectVendorApmData(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    relationship: RelationshipRecord
    vendor_name: Optional[str] = None
    phases: List[PhaseRecord] = []
    financial: Optional[FinancialRecord] = None
    follow_ups: List[FollowUpRecord] = []
    current: CurrentPhase

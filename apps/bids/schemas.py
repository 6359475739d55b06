from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, constr

from apps.reconciliation.records import LegacyBidVendor
from constants.statuses import ACTIVE, DEFAULT_PROJECT_STATUS, ESTIMATING


# -------------------------------
# Requests (legacy field names)
# -------------------------------

class BidCreate(BaseModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=255)
    project_email: Optional[EmailStr] = None
    project_address: Optional[constr(strip_whitespace=True, max_length=500)] = None
    general_contractor: Optional[constr(strip_whitespace=True, max_length=255)] = None
    project_description: Optional[str] = None
    due_date: Optional[date] = None
    status: str = DEFAULT_PROJECT_STATUS
    priority: bool = False
    estimated_value: Optional[Decimal] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    assign_to: Optional[str] = None
    file_location: Optional[str] = None
    department: str = ESTIMATING
    made_by_apm: bool = False


class BidUpdate(BaseModel):
    """
    Partial update in legacy shape. archived/on_hold (and the apm_ pair) are
    folded into the matching activity cycle.
    """
    title: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    project_name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    project_email: Optional[EmailStr] = None
    project_address: Optional[str] = None
    general_contractor: Optional[str] = None
    project_description: Optional[str] = None
    due_date: Optional[date] = None
    status: Optional[str] = None
    priority: Optional[bool] = None
    estimated_value: Optional[Decimal] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    assign_to: Optional[str] = None
    file_location: Optional[str] = None
    department: Optional[str] = None

    archived: Optional[bool] = None
    archived_by: Optional[str] = None
    on_hold: Optional[bool] = None
    on_hold_by: Optional[str] = None
    sent_to_apm: Optional[bool] = None

    apm_archived: Optional[bool] = None
    apm_on_hold: Optional[bool] = None
    gc_system: Optional[str] = None
    gc_contact_id: Optional[int] = None
    added_to_procore: Optional[bool] = None
    made_by_apm: Optional[bool] = None
    project_start_date: Optional[date] = None


# -------------------------------
# Responses
# -------------------------------

class LegacyBid(BaseModel):
    id: int
    title: str
    project_name: str
    project_email: Optional[str] = None
    project_address: Optional[str] = None
    general_contractor: Optional[str] = None
    project_description: Optional[str] = None
    due_date: Optional[date] = None
    status: str
    priority: bool = False
    estimated_value: Optional[Decimal] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    assign_to: Optional[str] = None
    file_location: Optional[str] = None
    department: str = ESTIMATING
    est_activity_cycle: str = ACTIVE
    apm_activity_cycle: str = ACTIVE
    archived: bool = False
    archived_at: Optional[datetime] = None
    archived_by: Optional[str] = None
    on_hold: bool = False
    on_hold_at: Optional[datetime] = None
    on_hold_by: Optional[str] = None
    sent_to_apm: bool = False
    sent_to_apm_at: Optional[datetime] = None
    apm_archived: bool = False
    apm_archived_at: Optional[datetime] = None
    apm_on_hold: bool = False
    apm_on_hold_at: Optional[datetime] = None
    gc_system: Optional[str] = None
    gc_contact_id: Optional[int] = None
    added_to_procore: bool = False
    made_by_apm: bool = False
    project_start_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    bid_vendors: List[LegacyBidVendor] = []


class DeleteResult(BaseModel):
    id: int
    deleted: List[str]

from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class BidVendorCreate(BaseModel):
    """
    Attach a vendor to a project. Any other legacy bid-vendor field may be
    sent alongside and is split onto the normalized tables.
    """
    model_config = ConfigDict(extra="allow")

    project_id: int
    vendor_id: int
    due_date: Optional[date] = None
    status: Optional[str] = None
    is_priority: bool = False
    cost_amount: Optional[Decimal] = None
    response_notes: Optional[str] = None
    assigned_apm_user: Optional[str] = None


class BidVendorUpdate(BaseModel):
    """
    Partial legacy-shaped update; unknown keys are accepted and reported back
    as ignored when they have no normalized column.
    """
    model_config = ConfigDict(extra="allow")


class LegacyImportResult(BaseModel):
    rows: int = 0
    relationships: int = 0
    follow_ups: int = 0
    financials: int = 0
    phases: int = 0

    def add(self, other: Dict[str, int]) -> None:
        for key, value in other.items():
            setattr(self, key, getattr(self, key) + value)

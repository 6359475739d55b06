from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, constr

from constants.statuses import CONTACT_TYPES, VENDOR_TYPES


# -------------------------------
# Contact schemas
# -------------------------------

class ContactCreate(BaseModel):
    contact_name: constr(strip_whitespace=True, min_length=1, max_length=255)
    contact_title: Optional[constr(strip_whitespace=True, max_length=255)] = None
    phone: Optional[constr(strip_whitespace=True, max_length=50)] = None
    email: Optional[EmailStr] = None
    contact_type: str = CONTACT_TYPES[0]
    is_primary: bool = False
    is_emergency_contact: bool = False
    notes: Optional[str] = None


class ContactUpdate(BaseModel):
    contact_name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    contact_title: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    contact_type: Optional[str] = None
    is_primary: Optional[bool] = None
    is_emergency_contact: Optional[bool] = None
    notes: Optional[str] = None


class ContactSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    contact_name: str
    contact_title: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    contact_type: Optional[str] = None


class ContactResponse(ContactSummary):
    vendor_id: int
    is_primary: bool = False
    is_emergency_contact: bool = False
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# -------------------------------
# Vendor schemas
# -------------------------------

class VendorCreate(BaseModel):
    company_name: constr(strip_whitespace=True, min_length=1, max_length=255)
    address: Optional[constr(strip_whitespace=True, max_length=500)] = None
    contact_person: Optional[str] = None
    phone: Optional[constr(strip_whitespace=True, max_length=50)] = None
    email: Optional[EmailStr] = None
    notes: Optional[str] = None
    specialty: Optional[str] = None
    is_priority: bool = False
    vendor_type: str = VENDOR_TYPES[0]
    insurance_expiry_date: Optional[date] = None
    insurance_notes: Optional[str] = None
    created_by: Optional[str] = None
    contacts: List[ContactCreate] = []


class VendorUpdate(BaseModel):
    company_name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    notes: Optional[str] = None
    specialty: Optional[str] = None
    is_priority: Optional[bool] = None
    vendor_type: Optional[str] = None
    insurance_expiry_date: Optional[date] = None
    insurance_notes: Optional[str] = None


class VendorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_name: str
    address: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    specialty: Optional[str] = None
    is_priority: bool = False
    vendor_type: Optional[str] = None
    insurance_expiry_date: Optional[date] = None
    insurance_notes: Optional[str] = None
    primary_contact_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    primary_contact: Optional[ContactSummary] = None

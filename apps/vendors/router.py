from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.vendors.schemas import (
    ContactCreate,
    ContactResponse,
    ContactUpdate,
    VendorCreate,
    VendorResponse,
    VendorUpdate,
)
from apps.vendors.service import VendorService
from models.base import get_db


router = APIRouter(prefix="/api/vendors", tags=["Vendors"])


@router.get("", response_model=List[VendorResponse])
async def list_vendors(db: AsyncSession = Depends(get_db)):
    return await VendorService.list_vendors(db)


@router.post("", response_model=VendorResponse, status_code=status.HTTP_201_CREATED)
async def create_vendor(payload: VendorCreate, db: AsyncSession = Depends(get_db)):
    return await VendorService.create_vendor_with_contacts(db, payload)


# Contact routes come before /{vendor_id} so "contacts" is not read as an id
@router.get("/contacts", response_model=List[ContactResponse])
async def list_all_contacts(db: AsyncSession = Depends(get_db)):
    return await VendorService.list_all_contacts(db)


@router.put("/contacts/{contact_id}", response_model=ContactResponse)
async def update_contact(contact_id: int, payload: ContactUpdate, db: AsyncSession = Depends(get_db)):
    return await VendorService.update_contact(db, contact_id, payload)


@router.delete("/contacts/{contact_id}")
async def delete_contact(contact_id: int, db: AsyncSession = Depends(get_db)) -> dict:
    new_primary: Optional[int] = await VendorService.delete_contact(db, contact_id)
    return {"id": contact_id, "primary_contact_id": new_primary}


@router.get("/{vendor_id}", response_model=VendorResponse)
async def get_vendor(vendor_id: int, db: AsyncSession = Depends(get_db)):
    return await VendorService.get_vendor(db, vendor_id)


@router.put("/{vendor_id}", response_model=VendorResponse)
async def update_vendor(vendor_id: int, payload: VendorUpdate, db: AsyncSession = Depends(get_db)):
    return await VendorService.update_vendor(db, vendor_id, payload)


@router.delete("/{vendor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vendor(vendor_id: int, db: AsyncSession = Depends(get_db)):
    await VendorService.delete_vendor(db, vendor_id)


@router.get("/{vendor_id}/contacts", response_model=List[ContactResponse])
async def list_contacts(vendor_id: int, db: AsyncSession = Depends(get_db)):
    return await VendorService.list_contacts(db, vendor_id)


@router.post("/{vendor_id}/contacts", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(vendor_id: int, payload: ContactCreate, db: AsyncSession = Depends(get_db)):
    return await VendorService.create_contact(db, vendor_id, payload)


@router.post("/{vendor_id}/primary-contact/sync", response_model=VendorResponse)
async def sync_primary_contact(vendor_id: int, db: AsyncSession = Depends(get_db)):
    return await VendorService.sync_primary_contact(db, vendor_id)


@router.post("/{vendor_id}/primary-contact/{contact_id}", response_model=VendorResponse)
async def set_primary_contact(vendor_id: int, contact_id: int, db: AsyncSession = Depends(get_db)):
    return await VendorService.set_primary_contact(db, vendor_id, contact_id)

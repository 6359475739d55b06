from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.bid_vendors.schemas import BidVendorCreate, BidVendorUpdate
from apps.bid_vendors.service import BidVendorService
from apps.bids.assembler import BidQueryAssembler
from apps.bids.router import get_assembler
from apps.reconciliation.records import LegacyBidVendor
from models.base import get_db


router = APIRouter(prefix="/api/bid-vendors", tags=["Bid Vendors"])


@router.post("", response_model=LegacyBidVendor, status_code=status.HTTP_201_CREATED)
async def add_vendor_to_project(payload: BidVendorCreate, db: AsyncSession = Depends(get_db), assembler: BidQueryAssembler = Depends(get_assembler)):
    rel = await BidVendorService.add_vendor_to_project(db, payload)
    return await BidVendorService.get_bid_vendor(db, assembler, rel.id)


@router.get("/{relationship_id}", response_model=LegacyBidVendor)
async def get_bid_vendor(relationship_id: int, db: AsyncSession = Depends(get_db), assembler: BidQueryAssembler = Depends(get_assembler)):
    return await BidVendorService.get_bid_vendor(db, assembler, relationship_id)


@router.patch("/{relationship_id}")
async def update_bid_vendor(relationship_id: int, payload: BidVendorUpdate, db: AsyncSession = Depends(get_db), assembler: BidQueryAssembler = Depends(get_assembler)) -> dict:
    ignored = await BidVendorService.update_bid_vendor(db, relationship_id, payload.model_dump(exclude_unset=True))
    row = await BidVendorService.get_bid_vendor(db, assembler, relationship_id)
    return {"bid_vendor": row.model_dump(mode="json"), "ignored": ignored}


@router.delete("/{relationship_id}")
async def remove_vendor_from_project(relationship_id: int, db: AsyncSession = Depends(get_db)) -> dict:
    deleted = await BidVendorService.remove_vendor_from_project(db, relationship_id)
    return {"id": relationship_id, "deleted": deleted}

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from apps.bids.assembler import BidQueryAssembler
from apps.notes.service import NoteService
from apps.reconciliation.transformer import legacy_dict
from apps.vendors.service import VendorService
from apps.realtime.collections import BID_VENDORS, BIDS, PROJECT_NOTES, VENDORS

logger = logging.getLogger(__name__)


def split_bids(bids: List[Dict[str, Any]]):
    """
    Assembled bids carry their vendors inline; the collections keep them flat.
    """
    flat_bids, bid_vendors = [], []
    for bid in bids:
        bid = dict(bid)
        bid_vendors.extend(bid.pop("bid_vendors", []))
        flat_bids.append(bid)
    return flat_bids, bid_vendors


class DatabaseFetcher:
    """
    Re-reads collections, or single items of them, each in its own session.
    """

    def __init__(self, session_factory: async_sessionmaker, assembler: BidQueryAssembler):
        self.session_factory = session_factory
        self.assembler = assembler

    async def fetch_all(self) -> Dict[str, List[Dict[str, Any]]]:
        async with self.session_factory() as db:
            bids, bid_vendors = split_bids(await self.assembler.assemble(db))
            vendors = [v.to_dict() for v in await VendorService.list_vendors(db)]
            notes = [n.to_legacy_dict() for n in await NoteService.list_notes(db)]
        return {BIDS: bids, BID_VENDORS: bid_vendors, VENDORS: vendors, PROJECT_NOTES: notes}

    async def fetch_bid(self, project_id: int) -> Optional[Dict[str, Any]]:
        async with self.session_factory() as db:
            bids, _ = split_bids(await self.assembler.assemble(db, [project_id]))
        return bids[0] if bids else None

    async def fetch_vendor(self, vendor_id: int) -> Optional[Dict[str, Any]]:
        async with self.session_factory() as db:
            vendor = await VendorService._load_vendor(db, vendor_id)
            return vendor.to_dict() if vendor is not None else None

    async def fetch_bid_vendor(self, relationship_id: int) -> Optional[Dict[str, Any]]:
        async with self.session_factory() as db:
            rows = await self.assembler.assemble_relationships(db, [relationship_id])
        return legacy_dict(rows[0]) if rows else None

    async def fetch_note(self, note_id: int) -> Optional[Dict[str, Any]]:
        async with self.session_factory() as db:
            note = await NoteService._load(db, note_id)
            return note.to_legacy_dict() if note is not None else None

"""
Batched read path for the bid board.

One query per entity type regardless of how many projects are fetched:
projects, relationships (joined with the vendor name), then phases,
financials and follow-ups for the whole relationship id set with ``IN``.
Children are grouped by parent id in memory before the shape transformer
flattens each relationship into a legacy row.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.reconciliation.transformer import legacy_dict, project_to_legacy_bid, to_legacy
from apps.reconciliation.records import LegacyBidVendor
from models.apm_phase import ApmPhase
from models.bid_vendor import BidVendorRow
from models.est_response import EstResponse
from models.project import Project
from models.project_financial import ProjectFinancial
from models.project_vendor import ProjectVendor
from models.vendor import Vendor

logger = logging.getLogger(__name__)

NORMALIZED = "normalized"
LEGACY = "legacy"


def group_by_parent(rows: Iterable[Any], key: Union[str, Callable[[Any], Any]]) -> Dict[Any, List[Any]]:
    """
    Group rows by their parent id, preserving row order inside each group.
    ``key`` is an attribute name or a callable.
    """
    get = key if callable(key) else (lambda row: getattr(row, key))
    grouped: Dict[Any, List[Any]] = defaultdict(list)
    for row in rows:
        grouped[get(row)].append(row)
    return dict(grouped)


class BidQueryAssembler:
    def __init__(self, schema_mode: str = NORMALIZED, synthesize_follow_ups: bool = True, today: Optional[date] = None):
        self.schema_mode = schema_mode
        self.synthesize_follow_ups = synthesize_follow_ups
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    async def assemble(self, db: AsyncSession, project_ids: Optional[Sequence[int]] = None) -> List[Dict[str, Any]]:
        """
        Legacy bid dicts, newest first, each carrying its ``bid_vendors`` list.
        ``project_ids=None`` means every project; an empty list means none.
        """
        if project_ids is not None and not project_ids:
            return []

        stmt = select(Project).order_by(Project.created_at.desc(), Project.id.desc())
        if project_ids is not None:
            stmt = stmt.where(Project.id.in_(list(project_ids)))
        projects = list((await db.execute(stmt)).scalars().all())
        if not projects:
            return []

        ids = [p.id for p in projects]
        if self.schema_mode == LEGACY:
            vendors_by_project = await self._legacy_rows_by_project(db, ids)
        else:
            vendors_by_project = await self._normalized_rows_by_project(db, ids)

        bids = []
        for project in projects:
            bid = project_to_legacy_bid(project)
            bid["bid_vendors"] = vendors_by_project.get(project.id, [])
            bids.append(bid)
        logger.debug("Assembled %d bids (%s schema)", len(bids), self.schema_mode)
        return bids

    async def assemble_relationships(self, db: AsyncSession, relationship_ids: Sequence[int]) -> List[LegacyBidVendor]:
        """
        Legacy rows for the given relationship ids, in id order. Ids that do
        not exist are skipped.
        """
        if not relationship_ids:
            return []
        ids = list(relationship_ids)
        if self.schema_mode == LEGACY:
            stmt = (
                select(BidVendorRow, Vendor.company_name)
                .outerjoin(Vendor, Vendor.id == BidVendorRow.vendor_id)
                .where(BidVendorRow.id.in_(ids))
                .order_by(BidVendorRow.id)
            )
            return [self._from_legacy_row(row, name) for row, name in (await db.execute(stmt)).all()]

        stmt = (
            select(ProjectVendor, Vendor.company_name)
            .join(Vendor, Vendor.id == ProjectVendor.vendor_id)
            .where(ProjectVendor.id.in_(ids))
            .order_by(ProjectVendor.id)
        )
        pairs = (await db.execute(stmt)).all()
        return await self._flatten(db, pairs)

    async def _normalized_rows_by_project(self, db: AsyncSession, project_ids: List[int]) -> Dict[int, List[Dict[str, Any]]]:
        stmt = (
            select(ProjectVendor, Vendor.company_name)
            .join(Vendor, Vendor.id == ProjectVendor.vendor_id)
            .where(ProjectVendor.project_id.in_(project_ids))
            .order_by(ProjectVendor.id)
        )
        pairs = (await db.execute(stmt)).all()
        rows = await self._flatten(db, pairs)
        return group_by_parent((legacy_dict(r) for r in rows), lambda r: r["bid_id"])

    async def _flatten(self, db: AsyncSession, pairs: Sequence[Any]) -> List[LegacyBidVendor]:
        if not pairs:
            return []
        rel_ids = [rel.id for rel, _ in pairs]

        phases = (await db.execute(
            select(ApmPhase).where(ApmPhase.project_vendor_id.in_(rel_ids)).order_by(ApmPhase.id)
        )).scalars().all()
        financials = (await db.execute(
            select(ProjectFinancial).where(ProjectFinancial.project_vendor_id.in_(rel_ids))
        )).scalars().all()
        follow_ups = (await db.execute(
            select(EstResponse).where(EstResponse.project_vendor_id.in_(rel_ids)).order_by(EstResponse.id)
        )).scalars().all()

        phases_by = group_by_parent(phases, "project_vendor_id")
        financial_by = {f.project_vendor_id: f for f in financials}
        follow_ups_by = group_by_parent(follow_ups, "project_vendor_id")

        today = self.today
        return [
            to_legacy(
                rel,
                phases_by.get(rel.id, []),
                financial_by.get(rel.id),
                follow_ups_by.get(rel.id, []),
                today=today,
                vendor_name=company_name,
                synthesize=self.synthesize_follow_ups,
            )
            for rel, company_name in pairs
        ]

    async def _legacy_rows_by_project(self, db: AsyncSession, project_ids: List[int]) -> Dict[int, List[Dict[str, Any]]]:
        stmt = (
            select(BidVendorRow, Vendor.company_name)
            .outerjoin(Vendor, Vendor.id == BidVendorRow.vendor_id)
            .where(BidVendorRow.bid_id.in_(project_ids))
            .order_by(BidVendorRow.id)
        )
        rows = [legacy_dict(self._from_legacy_row(row, name)) for row, name in (await db.execute(stmt)).all()]
        return group_by_parent(rows, lambda r: r["bid_id"])

    @staticmethod
    def _from_legacy_row(row: BidVendorRow, company_name: Optional[str]) -> LegacyBidVendor:
        record = LegacyBidVendor.model_validate(row)
        return record.model_copy(update={"vendor_name": company_name})

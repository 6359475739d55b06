import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.bid_vendors.schemas import BidVendorCreate, LegacyImportResult
from apps.bids.assembler import BidQueryAssembler
from apps.reconciliation.records import LegacyBidVendor, NormalizedBidVendor
from apps.reconciliation.transformer import (
    PHASE_DATE_ATTRS,
    derive_phase_status,
    split_legacy_updates,
    to_normalized,
    touches_phase_dates,
)
from common.cascade import delete_in_order
from common.exceptions import not_found
from models.apm_phase import ApmPhase
from models.bid_vendor import BidVendorRow
from models.est_response import EstResponse
from models.project import Project
from models.project_financial import ProjectFinancial
from models.project_vendor import ProjectVendor
from models.vendor import Vendor

logger = logging.getLogger(__name__)

_RELATIONSHIP_COLUMNS = ("is_priority", "apm_priority", "assigned_apm_user", "assigned_date")
_PHASE_COLUMNS = (
    "status",
    "requested_date",
    "sent_date",
    "follow_up_date",
    "completed_date",
    "approved_date",
    "notes",
    "revision_count",
    "last_revision_date",
)


class BidVendorService:
    @staticmethod
    async def get_relationship(db: AsyncSession, relationship_id: int) -> ProjectVendor:
        rel = await db.get(ProjectVendor, relationship_id)
        if not rel:
            raise not_found("Bid vendor")
        return rel

    @staticmethod
    async def get_bid_vendor(db: AsyncSession, assembler: BidQueryAssembler, relationship_id: int) -> LegacyBidVendor:
        rows = await assembler.assemble_relationships(db, [relationship_id])
        if not rows:
            raise not_found("Bid vendor")
        return rows[0]

    @staticmethod
    async def add_vendor_to_project(db: AsyncSession, payload: BidVendorCreate) -> ProjectVendor:
        """
        Link a vendor to a project with its estimating response, financial row
        and any phases the payload carries. Each part is committed on its own,
        so a failure part way leaves the earlier parts in place; calling again
        with the same payload fills in only what is missing.
        """
        if not await db.get(Project, payload.project_id):
            raise not_found("Project")
        if not await db.get(Vendor, payload.vendor_id):
            raise not_found("Vendor")

        data = payload.model_dump()
        data["bid_id"] = data.pop("project_id")
        record = to_normalized(LegacyBidVendor.model_validate({k: v for k, v in data.items() if v is not None}))
        rel, counts = await _write_normalized(db, record)
        logger.info("Vendor %s on project %s as bid vendor %s (%s)", payload.vendor_id, payload.project_id, rel.id, counts)
        return rel

    @staticmethod
    async def update_bid_vendor(db: AsyncSession, relationship_id: int, updates: Dict[str, Any]) -> List[str]:
        """
        Apply a partial legacy-shaped update across the normalized tables in
        one commit. A phase whose dates change without a status in the update
        gets the status its dates imply, as on import. Returns the keys that
        had nowhere to go.
        """
        rel = await BidVendorService.get_relationship(db, relationship_id)
        split = split_legacy_updates(updates)

        for key, value in split.relationship.items():
            setattr(rel, key, value)

        if split.follow_up:
            follow_up = (await db.execute(
                select(EstResponse)
                .where(EstResponse.project_vendor_id == rel.id)
                .order_by(EstResponse.id.desc())
                .limit(1)
            )).scalar_one_or_none()
            if follow_up is None:
                follow_up = EstResponse(project_vendor_id=rel.id)
                db.add(follow_up)
            for key, value in split.follow_up.items():
                setattr(follow_up, key, value)

        if split.financial:
            financial = (await db.execute(
                select(ProjectFinancial).where(ProjectFinancial.project_vendor_id == rel.id)
            )).scalar_one_or_none()
            if financial is None:
                financial = ProjectFinancial(project_vendor_id=rel.id)
                db.add(financial)
            for key, value in split.financial.items():
                setattr(financial, key, value)

        if split.phases:
            existing = (await db.execute(
                select(ApmPhase).where(ApmPhase.project_vendor_id == rel.id).order_by(ApmPhase.id)
            )).scalars().all()
            by_type = {p.phase_type: p for p in existing}
            for phase_type, values in split.phases.items():
                phase = by_type.get(phase_type)
                if phase is None:
                    phase = ApmPhase(project_vendor_id=rel.id, phase_type=phase_type)
                    db.add(phase)
                for key, value in values.items():
                    setattr(phase, key, 0 if key == "revision_count" and value is None else value)
                # dates moved without an explicit status: status follows the dates
                if "status" not in values and touches_phase_dates(values):
                    phase.status = derive_phase_status({a: getattr(phase, a) for a in PHASE_DATE_ATTRS})

        await db.commit()
        return split.ignored

    @staticmethod
    async def remove_vendor_from_project(db: AsyncSession, relationship_id: int) -> List[str]:
        await BidVendorService.get_relationship(db, relationship_id)
        steps = [
            (ApmPhase.__tablename__, delete(ApmPhase).where(ApmPhase.project_vendor_id == relationship_id)),
            (ProjectFinancial.__tablename__, delete(ProjectFinancial).where(ProjectFinancial.project_vendor_id == relationship_id)),
            (EstResponse.__tablename__, delete(EstResponse).where(EstResponse.project_vendor_id == relationship_id)),
            (ProjectVendor.__tablename__, delete(ProjectVendor).where(ProjectVendor.id == relationship_id)),
        ]
        deleted = await delete_in_order(db, "bid vendor", relationship_id, steps)
        logger.info("Removed bid vendor %s", relationship_id)
        return deleted

    @staticmethod
    async def import_legacy_rows(db: AsyncSession, project_id: Optional[int] = None) -> LegacyImportResult:
        """
        One-way copy of bid_vendors rows into the normalized tables. Rows
        already imported are topped up, never duplicated.
        """
        stmt = select(BidVendorRow).order_by(BidVendorRow.id)
        if project_id is not None:
            stmt = stmt.where(BidVendorRow.bid_id == project_id)
        rows = (await db.execute(stmt)).scalars().all()

        result = LegacyImportResult()
        for row in rows:
            legacy = LegacyBidVendor.model_validate(row)
            # the legacy id is not carried over; the relationship gets its own
            record = to_normalized(legacy.model_copy(update={"id": None}))
            _, counts = await _write_normalized(db, record)
            result.rows += 1
            result.add(counts)
        logger.info("Imported %d legacy bid vendor rows: %s", result.rows, result.model_dump())
        return result


async def _write_normalized(db: AsyncSession, record: NormalizedBidVendor) -> tuple:
    """
    Persist a normalized record part by part, skipping parts that already
    exist. Returns the relationship and how many rows of each kind were added.
    """
    counts = {"relationships": 0, "follow_ups": 0, "financials": 0, "phases": 0}
    relationship = record.relationship

    rel = (await db.execute(
        select(ProjectVendor).where(
            ProjectVendor.project_id == relationship.project_id,
            ProjectVendor.vendor_id == relationship.vendor_id,
        )
    )).scalar_one_or_none()
    if rel is None:
        rel = ProjectVendor(
            project_id=relationship.project_id,
            vendor_id=relationship.vendor_id,
            **{c: getattr(relationship, c) for c in _RELATIONSHIP_COLUMNS},
        )
        db.add(rel)
        await db.commit()
        await db.refresh(rel)
        counts["relationships"] += 1

    has_follow_up = (await db.execute(
        select(EstResponse.id).where(EstResponse.project_vendor_id == rel.id).limit(1)
    )).scalar_one_or_none()
    if has_follow_up is None and record.follow_ups:
        follow_up = record.follow_ups[0]
        db.add(EstResponse(
            project_vendor_id=rel.id,
            **follow_up.model_dump(exclude={"id", "project_vendor_id", "created_at", "updated_at"}),
        ))
        await db.commit()
        counts["follow_ups"] += 1

    if record.financial is not None:
        has_financial = (await db.execute(
            select(ProjectFinancial.id).where(ProjectFinancial.project_vendor_id == rel.id)
        )).scalar_one_or_none()
        if has_financial is None:
            db.add(ProjectFinancial(
                project_vendor_id=rel.id,
                **record.financial.model_dump(exclude={"id", "project_vendor_id"}),
            ))
            await db.commit()
            counts["financials"] += 1

    if record.phases:
        present = set((await db.execute(
            select(ApmPhase.phase_type).where(ApmPhase.project_vendor_id == rel.id)
        )).scalars().all())
        for phase in record.phases:
            if phase.phase_type in present:
                continue
            db.add(ApmPhase(
                project_vendor_id=rel.id,
                phase_type=phase.phase_type,
                **{c: getattr(phase, c) for c in _PHASE_COLUMNS},
            ))
            counts["phases"] += 1
        if counts["phases"]:
            await db.commit()

    return rel, counts

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.phases.schemas import CurrentPhase, PhaseCreate, PhaseUpdate, ProjectVendorApmData
from apps.reconciliation.phases import effective_follow_up_date, resolve_current_phase
from apps.reconciliation.records import FinancialRecord, FollowUpRecord, PhaseRecord, RelationshipRecord
from common.exceptions import conflict, not_found
from models.apm_phase import ApmPhase
from models.est_response import EstResponse
from models.project_financial import ProjectFinancial
from models.project_vendor import ProjectVendor
from models.vendor import Vendor

logger = logging.getLogger(__name__)


class PhaseService:
    @staticmethod
    async def get_phase(db: AsyncSession, phase_id: int) -> ApmPhase:
        phase = await db.get(ApmPhase, phase_id)
        if not phase:
            raise not_found("Phase")
        return phase

    @staticmethod
    async def list_phases(db: AsyncSession, project_vendor_id: int) -> List[ApmPhase]:
        res = await db.execute(
            select(ApmPhase).where(ApmPhase.project_vendor_id == project_vendor_id).order_by(ApmPhase.id)
        )
        return list(res.scalars().all())

    @staticmethod
    async def create_phase(db: AsyncSession, payload: PhaseCreate) -> ApmPhase:
        if not await db.get(ProjectVendor, payload.project_vendor_id):
            raise not_found("Bid vendor")
        existing = (await db.execute(
            select(ApmPhase.id).where(
                ApmPhase.project_vendor_id == payload.project_vendor_id,
                ApmPhase.phase_type == payload.phase_type,
            )
        )).scalar_one_or_none()
        if existing is not None:
            raise conflict(f"Phase {payload.phase_type} already exists for this bid vendor.")

        phase = ApmPhase(**payload.model_dump())
        db.add(phase)
        await db.commit()
        await db.refresh(phase)
        return phase

    @staticmethod
    async def update_phase(db: AsyncSession, phase_id: int, payload: PhaseUpdate) -> ApmPhase:
        phase = await PhaseService.get_phase(db, phase_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            if key == "revision_count" and value is None:
                value = 0
            setattr(phase, key, value)
        await db.commit()
        await db.refresh(phase)
        return phase

    @staticmethod
    async def delete_phase(db: AsyncSession, phase_id: int) -> None:
        phase = await PhaseService.get_phase(db, phase_id)
        await db.delete(phase)
        await db.commit()

    @staticmethod
    async def get_project_vendor_apm_data(
        db: AsyncSession,
        project_vendor_id: int,
        today: Optional[date] = None,
        synthesize: bool = True,
    ) -> ProjectVendorApmData:
        """
        Everything the APM view shows for one bid vendor, with the current
        phase resolved.
        """
        row = (await db.execute(
            select(ProjectVendor, Vendor.company_name)
            .join(Vendor, Vendor.id == ProjectVendor.vendor_id)
            .where(ProjectVendor.id == project_vendor_id)
        )).one_or_none()
        if row is None:
            raise not_found("Bid vendor")
        rel, vendor_name = row

        phases = [PhaseRecord.model_validate(p) for p in await PhaseService.list_phases(db, rel.id)]
        financial = (await db.execute(
            select(ProjectFinancial).where(ProjectFinancial.project_vendor_id == rel.id)
        )).scalar_one_or_none()
        follow_ups = (await db.execute(
            select(EstResponse).where(EstResponse.project_vendor_id == rel.id).order_by(EstResponse.id)
        )).scalars().all()

        resolved = resolve_current_phase(phases)
        current = CurrentPhase(
            phase_type=resolved.phase_type,
            status=resolved.status,
            next_follow_up_date=effective_follow_up_date(resolved.phase, today or date.today(), synthesize),
            updated_at=resolved.phase.updated_at if resolved.phase is not None else None,
        )
        return ProjectVendorApmData(
            relationship=RelationshipRecord.model_validate(rel),
            vendor_name=vendor_name,
            phases=phases,
            financial=FinancialRecord.model_validate(financial) if financial is not None else None,
            follow_ups=[FollowUpRecord.model_validate(f) for f in follow_ups],
            current=current,
        )

import logging
from typing import Any, Dict, List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.bids.assembler import BidQueryAssembler
from apps.bids.schemas import BidCreate, BidUpdate
from apps.reconciliation.activity import build_project_update
from common.cascade import delete_in_order
from common.exceptions import not_found
from constants.statuses import ACTIVE
from models.apm_phase import ApmPhase
from models.bid_vendor import BidVendorRow
from models.est_response import EstResponse
from models.project import Project
from models.project_financial import ProjectFinancial
from models.project_note import ProjectNote
from models.project_vendor import ProjectVendor

logger = logging.getLogger(__name__)


class ProjectService:
    @staticmethod
    async def get_project(db: AsyncSession, project_id: int) -> Project:
        project = await db.get(Project, project_id)
        if not project:
            raise not_found("Project")
        return project

    @staticmethod
    async def list_bids(db: AsyncSession, assembler: BidQueryAssembler) -> List[Dict[str, Any]]:
        return await assembler.assemble(db)

    @staticmethod
    async def get_bid(db: AsyncSession, assembler: BidQueryAssembler, project_id: int) -> Dict[str, Any]:
        bids = await assembler.assemble(db, [project_id])
        if not bids:
            raise not_found("Bid")
        return bids[0]

    @staticmethod
    async def create_project(db: AsyncSession, payload: BidCreate) -> Project:
        values = build_project_update(payload.model_dump())
        project = Project(**values)
        db.add(project)
        await db.commit()
        await db.refresh(project)
        logger.info("Created project %s (%s)", project.id, project.project_name)
        return project

    @staticmethod
    async def _apply(db: AsyncSession, project_id: int, values: Dict[str, Any]) -> Project:
        project = await ProjectService.get_project(db, project_id)
        for column, value in values.items():
            setattr(project, column, value)
        await db.commit()
        await db.refresh(project)
        return project

    @staticmethod
    async def update_project(db: AsyncSession, project_id: int, payload: BidUpdate) -> Project:
        updates = payload.model_dump(exclude_unset=True)
        return await ProjectService._apply(db, project_id, build_project_update(updates))

    @staticmethod
    async def update_estimating_project(db: AsyncSession, project_id: int, payload: BidUpdate) -> Project:
        """
        Estimating screens only touch the estimating columns and cycle.
        """
        updates = payload.model_dump(exclude_unset=True)
        return await ProjectService._apply(db, project_id, build_project_update(updates, include_apm=False))

    @staticmethod
    async def update_apm_project(db: AsyncSession, project_id: int, payload: BidUpdate) -> Project:
        updates = payload.model_dump(exclude_unset=True)
        values = build_project_update(updates, include_apm=True, include_estimating=False)
        return await ProjectService._apply(db, project_id, values)

    @staticmethod
    async def unarchive_bid(db: AsyncSession, project_id: int) -> Project:
        return await ProjectService._apply(db, project_id, {
            "est_activity_cycle": ACTIVE,
            "archived_at": None,
            "archived_by": None,
        })

    @staticmethod
    async def delete_project(db: AsyncSession, project_id: int) -> List[str]:
        """
        Delete a project and everything hanging off it, one committed step per
        table, children first. A failing step raises CascadeDeleteError naming
        the tables already gone; those rows are not restored and the project
        row stays.
        """
        await ProjectService.get_project(db, project_id)
        rel_ids = list((await db.execute(
            select(ProjectVendor.id).where(ProjectVendor.project_id == project_id)
        )).scalars().all())

        steps = []
        if rel_ids:
            steps += [
                (ApmPhase.__tablename__, delete(ApmPhase).where(ApmPhase.project_vendor_id.in_(rel_ids))),
                (ProjectFinancial.__tablename__, delete(ProjectFinancial).where(ProjectFinancial.project_vendor_id.in_(rel_ids))),
                (EstResponse.__tablename__, delete(EstResponse).where(EstResponse.project_vendor_id.in_(rel_ids))),
            ]
        steps += [
            (ProjectVendor.__tablename__, delete(ProjectVendor).where(ProjectVendor.project_id == project_id)),
            (BidVendorRow.__tablename__, delete(BidVendorRow).where(BidVendorRow.bid_id == project_id)),
            (ProjectNote.__tablename__, delete(ProjectNote).where(ProjectNote.project_id == project_id)),
            (Project.__tablename__, delete(Project).where(Project.id == project_id)),
        ]

        deleted = await delete_in_order(db, "project", project_id, steps)
        logger.info("Deleted project %s (%s)", project_id, ", ".join(deleted))
        return deleted


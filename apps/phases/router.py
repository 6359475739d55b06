from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.phases.schemas import PhaseCreate, PhaseUpdate, ProjectVendorApmData
from apps.phases.service import PhaseService
from apps.reconciliation.records import PhaseRecord
from models.base import get_db


router = APIRouter(prefix="/api/apm-phases", tags=["APM Phases"])


@router.get("/bid-vendor/{project_vendor_id}", response_model=List[PhaseRecord])
async def list_phases(project_vendor_id: int, db: AsyncSession = Depends(get_db)):
    return await PhaseService.list_phases(db, project_vendor_id)


@router.get("/bid-vendor/{project_vendor_id}/apm-data", response_model=ProjectVendorApmData)
async def get_apm_data(project_vendor_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    settings = request.app.state.settings
    return await PhaseService.get_project_vendor_apm_data(db, project_vendor_id, synthesize=settings.SYNTHESIZE_FOLLOW_UP_DATES)


@router.post("", response_model=PhaseRecord, status_code=status.HTTP_201_CREATED)
async def create_phase(payload: PhaseCreate, db: AsyncSession = Depends(get_db)):
    return await PhaseService.create_phase(db, payload)


@router.patch("/{phase_id}", response_model=PhaseRecord)
async def update_phase(phase_id: int, payload: PhaseUpdate, db: AsyncSession = Depends(get_db)):
    return await PhaseService.update_phase(db, phase_id, payload)


@router.delete("/{phase_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_phase(phase_id: int, db: AsyncSession = Depends(get_db)):
    await PhaseService.delete_phase(db, phase_id)

from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.bids.assembler import BidQueryAssembler
from apps.bids.schemas import BidCreate, BidUpdate, DeleteResult, LegacyBid
from apps.bids.service import ProjectService
from models.base import get_db


router = APIRouter(prefix="/api/bids", tags=["Bids"])


def get_assembler(request: Request) -> BidQueryAssembler:
    return request.app.state.assembler


@router.get("", response_model=List[LegacyBid])
async def list_bids(db: AsyncSession = Depends(get_db), assembler: BidQueryAssembler = Depends(get_assembler)):
    return await ProjectService.list_bids(db, assembler)


@router.get("/{project_id}", response_model=LegacyBid)
async def get_bid(project_id: int, db: AsyncSession = Depends(get_db), assembler: BidQueryAssembler = Depends(get_assembler)):
    return await ProjectService.get_bid(db, assembler, project_id)


@router.post("", response_model=LegacyBid, status_code=status.HTTP_201_CREATED)
async def create_bid(payload: BidCreate, db: AsyncSession = Depends(get_db), assembler: BidQueryAssembler = Depends(get_assembler)):
    project = await ProjectService.create_project(db, payload)
    return await ProjectService.get_bid(db, assembler, project.id)


@router.put("/{project_id}", response_model=LegacyBid)
async def update_bid(project_id: int, payload: BidUpdate, db: AsyncSession = Depends(get_db), assembler: BidQueryAssembler = Depends(get_assembler)):
    await ProjectService.update_project(db, project_id, payload)
    return await ProjectService.get_bid(db, assembler, project_id)


@router.patch("/{project_id}/estimating", response_model=LegacyBid)
async def update_estimating_bid(project_id: int, payload: BidUpdate, db: AsyncSession = Depends(get_db), assembler: BidQueryAssembler = Depends(get_assembler)):
    await ProjectService.update_estimating_project(db, project_id, payload)
    return await ProjectService.get_bid(db, assembler, project_id)


@router.patch("/{project_id}/apm", response_model=LegacyBid)
async def update_apm_bid(project_id: int, payload: BidUpdate, db: AsyncSession = Depends(get_db), assembler: BidQueryAssembler = Depends(get_assembler)):
    await ProjectService.update_apm_project(db, project_id, payload)
    return await ProjectService.get_bid(db, assembler, project_id)


@router.post("/{project_id}/unarchive", response_model=LegacyBid)
async def unarchive_bid(project_id: int, db: AsyncSession = Depends(get_db), assembler: BidQueryAssembler = Depends(get_assembler)):
    await ProjectService.unarchive_bid(db, project_id)
    return await ProjectService.get_bid(db, assembler, project_id)


@router.delete("/{project_id}", response_model=DeleteResult)
async def delete_bid(project_id: int, db: AsyncSession = Depends(get_db)):
    deleted = await ProjectService.delete_project(db, project_id)
    return DeleteResult(id=project_id, deleted=deleted)

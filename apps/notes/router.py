from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.notes.schemas import NoteCreate, NoteResponse, NoteUpdate
from apps.notes.service import NoteService
from models.base import get_db


router = APIRouter(prefix="/api/project-notes", tags=["Project Notes"])


@router.get("", response_model=List[NoteResponse])
async def list_notes(bid_id: Optional[int] = Query(default=None), db: AsyncSession = Depends(get_db)):
    notes = await NoteService.list_notes(db, bid_id)
    return [n.to_legacy_dict() for n in notes]


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(payload: NoteCreate, db: AsyncSession = Depends(get_db)):
    note = await NoteService.create_note(db, payload)
    return note.to_legacy_dict()


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(note_id: int, payload: NoteUpdate, db: AsyncSession = Depends(get_db)):
    note = await NoteService.update_note(db, note_id, payload)
    return note.to_legacy_dict()


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(note_id: int, db: AsyncSession = Depends(get_db)):
    await NoteService.delete_note(db, note_id)

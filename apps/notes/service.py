from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.notes.schemas import NoteCreate, NoteUpdate
from common.exceptions import not_found
from models.project import Project
from models.project_note import ProjectNote
from models.user import User


class NoteService:
    @staticmethod
    async def _load(db: AsyncSession, note_id: int) -> Optional[ProjectNote]:
        # populate_existing so the joined author is current after a commit
        stmt = select(ProjectNote).where(ProjectNote.id == note_id).execution_options(populate_existing=True)
        return (await db.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def get_note(db: AsyncSession, note_id: int) -> ProjectNote:
        note = await NoteService._load(db, note_id)
        if not note:
            raise not_found("Note")
        return note

    @staticmethod
    async def list_notes(db: AsyncSession, project_id: Optional[int] = None) -> List[ProjectNote]:
        stmt = select(ProjectNote).order_by(ProjectNote.created_at.desc(), ProjectNote.id.desc())
        if project_id is not None:
            stmt = stmt.where(ProjectNote.project_id == project_id)
        return list((await db.execute(stmt)).scalars().all())

    @staticmethod
    async def create_note(db: AsyncSession, payload: NoteCreate) -> ProjectNote:
        if not await db.get(Project, payload.bid_id):
            raise not_found("Project")
        if payload.user_id is not None and not await db.get(User, payload.user_id):
            raise not_found("User")
        note = ProjectNote(project_id=payload.bid_id, user_id=payload.user_id, content=payload.content)
        db.add(note)
        await db.commit()
        return await NoteService.get_note(db, note.id)

    @staticmethod
    async def update_note(db: AsyncSession, note_id: int, payload: NoteUpdate) -> ProjectNote:
        note = await NoteService.get_note(db, note_id)
        note.content = payload.content
        await db.commit()
        return await NoteService.get_note(db, note_id)

    @staticmethod
    async def delete_note(db: AsyncSession, note_id: int) -> None:
        note = await NoteService.get_note(db, note_id)
        await db.delete(note)
        await db.commit()

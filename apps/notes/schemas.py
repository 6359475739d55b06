from datetime import datetime
from typing import Optional

from pydantic import BaseModel, constr


class NoteCreate(BaseModel):
    bid_id: int
    user_id: Optional[str] = None
    content: constr(strip_whitespace=True, min_length=1)


class NoteUpdate(BaseModel):
    content: constr(strip_whitespace=True, min_length=1)


class NoteAuthor(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    color_preference: Optional[str] = None


class NoteResponse(BaseModel):
    id: int
    bid_id: int
    user_id: Optional[str] = None
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[NoteAuthor] = None

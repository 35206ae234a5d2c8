"""Journal entry API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class CreateEntryRequest(BaseModel):
    title: str = Field(min_length=1)
    content: str = ""


class UpdateEntryRequest(BaseModel):
    title: str | None = None
    content: str | None = None


class JournalEntry(BaseModel):
    id: str
    title: str
    content: str
    created_at: datetime

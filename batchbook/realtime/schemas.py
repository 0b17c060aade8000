"""Socket event payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _EventModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class JoinEntryEvent(_EventModel):
    entry_id: int = Field(alias="entryId")


class TypingEvent(_EventModel):
    entry_id: int = Field(alias="entryId")
    content_preview: str = Field(default="", alias="contentPreview")


class SaveEvent(_EventModel):
    entry_id: int = Field(alias="entryId")
    title: str
    content: str

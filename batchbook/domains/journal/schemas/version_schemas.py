"""Version request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class SnapshotRequest(BaseModel):
    note: Optional[str] = Field(default=None, max_length=255)

    @field_validator("note", mode="before")
    @classmethod
    def strip_note(cls, v):
        if isinstance(v, str):
            v = v.strip()
        return v or None


class VersionResponse(BaseModel):
    id: int
    entry_id: int
    user_id: int
    title: str
    content: str
    tags: List[str]
    note: Optional[str]
    source: str
    created_at: str
    updated_at: str

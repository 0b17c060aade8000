"""Journal entry request/response schemas."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from batchbook.domains.journal.models import TITLE_MAX_LENGTH, Mood, sanitize_tags


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class EntryCreate(BaseModel):
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    content: str = Field(min_length=1)
    mood: Optional[Mood] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return _strip(v)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content cannot be blank")
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v):
        return [] if v is None else v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: List[str]) -> List[str]:
        return sanitize_tags(v)


class EntryUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    content: Optional[str] = Field(default=None, min_length=1)
    mood: Optional[Mood] = None
    tags: Optional[List[str]] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return _strip(v)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("content cannot be blank")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return sanitize_tags(v) if v is not None else None


class EntryListFilter(BaseModel):
    q: Optional[str] = None
    exact: bool = False
    tags: Optional[str] = None
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    mood: Optional[Mood] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)

    model_config = {"populate_by_name": True}

    @field_validator("q", "tags", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        v = _strip(v)
        return v or None

    @model_validator(mode="after")
    def check_range(self) -> "EntryListFilter":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self

    @property
    def tag_list(self) -> List[str]:
        if not self.tags:
            return []
        return [t.strip().lower() for t in self.tags.split(",") if t.strip()]


class EntryResponse(BaseModel):
    id: int
    user_id: int
    title: str
    content: str
    mood: Optional[str]
    tags: List[str]
    created_at: str
    updated_at: str

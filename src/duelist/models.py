from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DUE_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class TaskDraft(BaseModel):
    """A task as returned by the model, before it is stored."""

    title: str = Field(..., min_length=1)
    due_date: str = Field(..., pattern=DUE_DATE_PATTERN)
    description: str = ""

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("title must not be blank")
        return v2

    @field_validator("description", mode="before")
    @classmethod
    def description_default(cls, v):
        # models send null for "no description"
        return "" if v is None else v


class Task(BaseModel):
    id: int
    title: str = Field(..., min_length=1)
    due_date: str = Field(..., pattern=DUE_DATE_PATTERN)
    description: str = ""
    completed: bool = False
    created_at: datetime


class TaskUpdate(BaseModel):
    """Partial update body for PUT /api/tasks/{id}.

    Only keys present in the request are applied. ``id`` and ``created_at``
    are not part of the model, so they can never be overwritten. A key that is
    sent must carry a real value: null is rejected rather than stored.
    """

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(None, min_length=1)
    due_date: Optional[str] = Field(None, pattern=DUE_DATE_PATTERN)
    description: Optional[str] = None
    completed: Optional[bool] = None

    @field_validator("title", "due_date", "description", "completed", mode="before")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("title must not be blank")
        return v2

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)

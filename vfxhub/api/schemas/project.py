from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from vfxhub.api.schemas.base import RecordModel


class ProjectStatus(str, Enum):
    PRE_PRODUCTION = "pre-production"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    COMPLETE = "complete"


def _coerce_date(value):
    # Platforms hand back full timestamps for date fields; keep the calendar day
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


class ProjectBase(RecordModel):
    title: str = Field(..., min_length=1, example="Nebula Drift - Main Titles")
    client: str = Field("", example="Orbit Pictures")
    status: ProjectStatus = Field(ProjectStatus.PRE_PRODUCTION, example=ProjectStatus.IN_PROGRESS)
    due_date: Optional[date] = Field(None, example="2025-03-15")
    description: str = Field("", example="Title sequence with volumetric nebula plates")

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, value):
        return _coerce_date(value)


class ProjectCreate(ProjectBase):
    created_at: Optional[datetime] = None


class ProjectUpdate(RecordModel):
    title: Optional[str] = Field(None, min_length=1, example="Nebula Drift - Final")
    client: Optional[str] = None
    status: Optional[ProjectStatus] = None
    due_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, value):
        return _coerce_date(value)


class Project(ProjectBase):
    id: int = Field(..., example=1)
    created_at: datetime

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, value):
        # Stored records are read leniently: an unreadable due date reads as none
        value = _coerce_date(value)
        if isinstance(value, str):
            try:
                return date.fromisoformat(value)
            except ValueError:
                return None
        return value

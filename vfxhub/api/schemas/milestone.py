from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from vfxhub.api.schemas.base import RecordModel


class MilestoneBucket(str, Enum):
    ALL = "all"
    COMPLETED = "completed"
    PENDING = "pending"
    OVERDUE = "overdue"
    TODAY = "today"


class MilestoneBase(RecordModel):
    title: str = Field(..., min_length=1, example="Client review: comp pass 2")
    description: str = Field("", example="Deliver slap comps for shots 010-060")
    # Stored as given; parsed on read so a malformed or missing value only affects ordering
    due_date: Optional[str] = Field(None, example="2025-02-01")
    completed: bool = Field(False, example=False)
    project_id: Optional[int] = Field(None, example=1)


class MilestoneCreate(MilestoneBase):
    due_date: str = Field(..., example="2025-02-01")


class MilestoneUpdate(RecordModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    due_date: Optional[str] = None
    completed: Optional[bool] = None
    project_id: Optional[int] = None


class Milestone(MilestoneBase):
    id: int = Field(..., example=1)


class MilestoneView(Milestone):
    project_title: str = Field(..., example="Nebula Drift - Main Titles")


class MilestoneSummary(BaseModel):
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    today: int = 0

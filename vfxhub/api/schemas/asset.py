from datetime import datetime
from typing import List, Optional

from pydantic import Field

from vfxhub.api.schemas.base import RecordModel


class AssetBase(RecordModel):
    file_name: str = Field(..., min_length=1, example="explosion_plate_v003.exr")
    file_type: str = Field("application/octet-stream", example="image/png")
    file_size: int = Field(0, ge=0, example=5242880)
    project_id: Optional[int] = Field(None, example=1)
    thumbnail_url: Optional[str] = Field(None, example="https://cdn.example.com/thumbs/plate.png")
    tags: List[str] = Field(default_factory=list, example=["fx", "plate"])


class AssetCreate(AssetBase):
    upload_date: Optional[datetime] = None


class AssetUpdate(RecordModel):
    file_name: Optional[str] = Field(None, min_length=1)
    file_type: Optional[str] = None
    project_id: Optional[int] = None
    thumbnail_url: Optional[str] = None
    tags: Optional[List[str]] = None


class Asset(AssetBase):
    id: int = Field(..., example=1)
    upload_date: datetime


class AssetView(Asset):
    """Asset with its project reference resolved for display"""

    project_title: str = Field(..., example="Nebula Drift - Main Titles")

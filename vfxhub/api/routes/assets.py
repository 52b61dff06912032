import logging
from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from vfxhub.api.dependencies import get_repositories
from vfxhub.api.schemas.asset import Asset, AssetCreate, AssetUpdate, AssetView
from vfxhub.api.services.query import QueryCriteria, apply_query, resolve_project_title
from vfxhub.api.services.repository import Repositories
from vfxhub.api.services.upload_rules import validate_asset_upload

router = APIRouter()
logger = logging.getLogger(__name__)


class AssetType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    MODEL = "model"
    OTHER = "other"


def _with_project_titles(assets, projects) -> List[AssetView]:
    return [
        AssetView(**asset.model_dump(), project_title=resolve_project_title(projects, asset.project_id))
        for asset in assets
    ]


@router.get(
    "/",
    response_model=List[AssetView],
    summary="List assets",
    description="Search matches the file name or any tag; type is derived from the stored MIME type.",
)
def list_assets(
    search: Optional[str] = Query(None),
    type: Optional[AssetType] = Query(None),
    project_id: Optional[str] = Query(None, alias="projectId"),
    repositories: Repositories = Depends(get_repositories),
):
    criteria = QueryCriteria(
        search=search,
        category=type.value if type else None,
        project_id=project_id,
    )
    assets = apply_query(repositories.assets.list_all(), criteria, "assets")
    return _with_project_titles(assets, repositories.projects.list_all())


@router.post(
    "/",
    response_model=Asset,
    summary="Register an uploaded asset",
    responses={400: {"description": "File too large or unsupported format"}},
)
def create_asset(payload: AssetCreate, repositories: Repositories = Depends(get_repositories)):
    payload = validate_asset_upload(payload)
    return repositories.assets.create(payload.model_dump(mode="json", by_alias=True))


@router.get("/{asset_id}", response_model=AssetView, responses={404: {"description": "Asset not found"}})
def get_asset(asset_id: int, repositories: Repositories = Depends(get_repositories)):
    asset = repositories.assets.get(asset_id)
    return _with_project_titles([asset], repositories.projects.list_all())[0]


@router.patch("/{asset_id}", response_model=Asset)
def update_asset(
    asset_id: int,
    payload: AssetUpdate,
    repositories: Repositories = Depends(get_repositories),
):
    changes = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return repositories.assets.update(asset_id, changes)


@router.delete("/{asset_id}", responses={404: {"description": "Asset not found"}})
def delete_asset(asset_id: int, repositories: Repositories = Depends(get_repositories)):
    repositories.assets.delete(asset_id)
    return {"message": "Asset deleted successfully"}

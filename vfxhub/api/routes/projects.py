import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from vfxhub.api.dependencies import get_repositories
from vfxhub.api.schemas.asset import AssetView
from vfxhub.api.schemas.milestone import MilestoneView
from vfxhub.api.schemas.project import Project, ProjectCreate, ProjectStatus, ProjectUpdate
from vfxhub.api.services.query import QueryCriteria, apply_query, sort_by_due_date
from vfxhub.api.services.repository import Repositories

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/",
    response_model=List[Project],
    summary="List projects",
    description="Projects matching the search term (title, client, description) and status.",
)
def list_projects(
    search: Optional[str] = Query(None, description="Case-insensitive substring"),
    status: Optional[ProjectStatus] = Query(None),
    repositories: Repositories = Depends(get_repositories),
):
    criteria = QueryCriteria(search=search, category=status.value if status else None)
    return apply_query(repositories.projects.list_all(), criteria, "projects")


@router.post(
    "/",
    response_model=Project,
    summary="Create a project",
    responses={
        200: {"description": "Project created"},
        400: {"description": "Invalid project"},
    },
)
def create_project(payload: ProjectCreate, repositories: Repositories = Depends(get_repositories)):
    return repositories.projects.create(payload.model_dump(mode="json", by_alias=True))


@router.get("/{project_id}", response_model=Project, responses={404: {"description": "Project not found"}})
def get_project(project_id: int, repositories: Repositories = Depends(get_repositories)):
    return repositories.projects.get(project_id)


@router.patch("/{project_id}", response_model=Project, summary="Update a project")
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    repositories: Repositories = Depends(get_repositories),
):
    changes = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return repositories.projects.update(project_id, changes)


@router.delete(
    "/{project_id}",
    summary="Delete a project",
    description="Assets and milestones pointing at the project are kept; they resolve to 'Unknown Project'.",
    responses={
        200: {"description": "Deleted"},
        404: {"description": "Project not found"},
    },
)
def delete_project(project_id: int, repositories: Repositories = Depends(get_repositories)):
    repositories.projects.delete(project_id)
    return {"message": "Project deleted successfully"}


@router.get("/{project_id}/assets", response_model=List[AssetView], summary="Assets of a project")
def list_project_assets(project_id: int, repositories: Repositories = Depends(get_repositories)):
    project = repositories.projects.get(project_id)
    return [
        AssetView(**asset.model_dump(), project_title=project.title)
        for asset in repositories.assets.list_by_project(project_id)
    ]


@router.get(
    "/{project_id}/milestones",
    response_model=List[MilestoneView],
    summary="Milestones of a project, earliest due first",
)
def list_project_milestones(project_id: int, repositories: Repositories = Depends(get_repositories)):
    project = repositories.projects.get(project_id)
    milestones = sort_by_due_date(repositories.milestones.list_by_project(project_id))
    return [MilestoneView(**m.model_dump(), project_title=project.title) for m in milestones]

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from vfxhub.api.dependencies import get_repositories
from vfxhub.api.schemas.milestone import (
    Milestone,
    MilestoneBucket,
    MilestoneCreate,
    MilestoneSummary,
    MilestoneUpdate,
    MilestoneView,
)
from vfxhub.api.services.query import (
    QueryCriteria,
    apply_query,
    resolve_project_title,
    status_counts,
)
from vfxhub.api.services.repository import Repositories

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/",
    response_model=List[MilestoneView],
    summary="Timeline",
    description=(
        "Milestones in the requested bucket, optionally limited to one project, "
        "sorted by due date. Unreadable due dates are listed last."
    ),
)
def list_milestones(
    bucket: MilestoneBucket = Query(MilestoneBucket.ALL),
    project_id: Optional[str] = Query(None, alias="projectId"),
    search: Optional[str] = Query(None),
    repositories: Repositories = Depends(get_repositories),
):
    criteria = QueryCriteria(search=search, project_id=project_id, bucket=bucket.value)
    milestones = apply_query(repositories.milestones.list_all(), criteria, "milestones")
    projects = repositories.projects.list_all()
    return [
        MilestoneView(**m.model_dump(), project_title=resolve_project_title(projects, m.project_id))
        for m in milestones
    ]


@router.get("/summary", response_model=MilestoneSummary, summary="Milestone counts per bucket")
def milestone_summary(repositories: Repositories = Depends(get_repositories)):
    return MilestoneSummary(**status_counts(repositories.milestones.list_all()))


@router.post("/", response_model=Milestone, summary="Create a milestone")
def create_milestone(payload: MilestoneCreate, repositories: Repositories = Depends(get_repositories)):
    return repositories.milestones.create(payload.model_dump(mode="json", by_alias=True))


@router.get("/{milestone_id}", response_model=Milestone, responses={404: {"description": "Milestone not found"}})
def get_milestone(milestone_id: int, repositories: Repositories = Depends(get_repositories)):
    return repositories.milestones.get(milestone_id)


@router.patch("/{milestone_id}", response_model=Milestone)
def update_milestone(
    milestone_id: int,
    payload: MilestoneUpdate,
    repositories: Repositories = Depends(get_repositories),
):
    changes = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return repositories.milestones.update(milestone_id, changes)


@router.delete("/{milestone_id}", responses={404: {"description": "Milestone not found"}})
def delete_milestone(milestone_id: int, repositories: Repositories = Depends(get_repositories)):
    repositories.milestones.delete(milestone_id)
    return {"message": "Milestone deleted successfully"}

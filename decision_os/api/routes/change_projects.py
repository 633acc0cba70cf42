"""
Change project routes.
"""
from typing import List

import structlog
from fastapi import APIRouter, Depends

from decision_os.api.dependencies import get_store
from decision_os.schemas.state import ChangeProjectRequest, ChangeProjectResponse, WorkstreamUpdate
from decision_os.services import change_tracker
from decision_os.services.storage import KEY_CHANGE_PROJECTS, KeyValueStore

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/change-projects", response_model=List[ChangeProjectResponse])
async def list_projects(store: KeyValueStore = Depends(get_store)):
    return [
        ChangeProjectResponse(**change_tracker.project_summary(p))
        for p in store.get_list(KEY_CHANGE_PROJECTS)
    ]


@router.post("/change-projects", response_model=ChangeProjectResponse, status_code=201)
async def create_project(body: ChangeProjectRequest, store: KeyValueStore = Depends(get_store)):
    project = change_tracker.create_project(body.name, body.description)
    store.set(KEY_CHANGE_PROJECTS, [project] + store.get_list(KEY_CHANGE_PROJECTS))
    return ChangeProjectResponse(**change_tracker.project_summary(project))


@router.patch(
    "/change-projects/{project_id}/workstreams/{index}",
    response_model=ChangeProjectResponse,
    summary="Update a workstream",
)
async def update_workstream(
    project_id: str,
    index: int,
    body: WorkstreamUpdate,
    store: KeyValueStore = Depends(get_store),
):
    projects = store.get_list(KEY_CHANGE_PROJECTS)
    project = change_tracker.find_project(projects, project_id)
    updated = change_tracker.update_workstream(project, index, body.field, body.value)
    store.set(KEY_CHANGE_PROJECTS, change_tracker.replace_project(projects, updated))

    summary = change_tracker.project_summary(updated)
    logger.info(
        "workstream_updated",
        project_id=project_id,
        index=index,
        field=body.field,
        progress=summary["progress"],
        status=summary["status"],
    )
    return ChangeProjectResponse(**summary)

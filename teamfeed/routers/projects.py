"""
Project workspace endpoints:
  GET    /projects                  — list projects (archived hidden unless include_archived)
  GET    /projects/by-user/{id}     — projects created by a user
  POST   /projects                  — create
  GET    /projects/{id}             — fetch one
  PATCH  /projects/{id}             — update name / description / theme colour
  DELETE /projects/{id}             — delete
  POST   /projects/{id}/archive     — archive
  POST   /projects/{id}/restore     — restore from archive
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from teamfeed.actor import get_actor_id
from teamfeed.database import get_db
from teamfeed.errors import TeamFeedError, error_to_http
from teamfeed.models import Project
from teamfeed.repository import Collection
from teamfeed.schemas import ProjectCreate, ProjectResponse, ProjectUpdate

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


async def _set_archived(db: AsyncSession, project_id: str, archived: bool) -> Project:
    try:
        project = await Collection(db, Project).update(project_id, archived=archived)
    except TeamFeedError as exc:
        raise error_to_http(exc) from exc
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    logger.info("Project %s archived=%s", project_id, archived)
    return project


@router.get("/", response_model=list[ProjectResponse])
async def list_projects(
    include_archived: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    filters = {} if include_archived else {"archived": False}
    try:
        return await Collection(db, Project).list(order_by="created_at", **filters)
    except TeamFeedError as exc:
        raise error_to_http(exc) from exc


@router.get("/by-user/{user_id}", response_model=list[ProjectResponse])
async def list_user_projects(user_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return await Collection(db, Project).list(order_by="created_at", created_by=user_id)
    except TeamFeedError as exc:
        raise error_to_http(exc) from exc


@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("create_project"):
        try:
            project = await Collection(db, Project).create(**body.model_dump(), created_by=actor_id)
        except TeamFeedError as exc:
            raise error_to_http(exc) from exc
        logger.info("Project created: %s (%s)", project.name, project.id)
        return project


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: str, db: AsyncSession = Depends(get_db)):
    project = await db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(project_id: str, body: ProjectUpdate, db: AsyncSession = Depends(get_db)):
    try:
        project = await Collection(db, Project).update(project_id, **body.model_dump(exclude_unset=True))
    except TeamFeedError as exc:
        raise error_to_http(exc) from exc
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: str, db: AsyncSession = Depends(get_db)):
    try:
        deleted = await Collection(db, Project).delete(project_id)
    except TeamFeedError as exc:
        raise error_to_http(exc) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Project not found")
    logger.info("Project %s deleted", project_id)


@router.post("/{project_id}/archive", response_model=ProjectResponse)
async def archive_project(project_id: str, db: AsyncSession = Depends(get_db)):
    return await _set_archived(db, project_id, True)


@router.post("/{project_id}/restore", response_model=ProjectResponse)
async def restore_project(project_id: str, db: AsyncSession = Depends(get_db)):
    return await _set_archived(db, project_id, False)

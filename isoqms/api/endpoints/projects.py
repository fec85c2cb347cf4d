"""
Project Endpoints

CRUD operations for projects within a tenant.
Creating a project counts against the plan's project quota; archived
projects do not.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional

from isoqms.models.client import ConsultingClient
from isoqms.models.project import Project, ProjectStatus
from isoqms.schemas.project import ProjectResponse, ProjectCreate, ProjectUpdate
from isoqms.api.deps import get_request_context, Pagination
from isoqms.api.responses import DataResponse, PageResponse, Deleted, paginate, deleted
from isoqms.core.permissions import require_permission
from isoqms.core.plan_limits import enforce_plan_limit
from isoqms.core.tenancy import RequestContext
from isoqms.services.activity import log_activity, get_client_ip, change_action, change_metadata
from isoqms.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants/{tenant_slug}/projects", tags=["projects"])


@router.get("", response_model=PageResponse[ProjectResponse])
def list_projects(
    status: Optional[ProjectStatus] = None,
    client_id: Optional[str] = Query(None, alias="clientId"),
    search: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "project", "read")

    query = ctx.db.query(Project)
    if status:
        query = query.filter(Project.status == status.value)
    if client_id:
        query = query.filter(Project.client_id == client_id)
    if search:
        query = query.filter(Project.name.ilike(f"%{search}%"))

    return paginate(query.order_by(Project.created_at.desc()), pagination)


@router.get("/{project_id}", response_model=DataResponse[ProjectResponse])
def get_project(
    project_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "project", "read")
    return {"data": ctx.db.get_or_404(Project, project_id, "Project")}


@router.post("", response_model=DataResponse[ProjectResponse], status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "project", "create")
    enforce_plan_limit(ctx.db.session, ctx.tenant_id, "projects")
    if project_data.client_id:
        ctx.db.get_or_404(ConsultingClient, project_data.client_id, "Client")

    project = ctx.db.add(Project(**project_data.model_dump()))
    ctx.db.flush()
    log_activity(ctx.db, ctx, "create", "project", project.id, {"name": project.name}, get_client_ip(request))
    ctx.db.commit()
    ctx.db.refresh(project)

    logger.info(f"Project created: {project.id} by {ctx.user_id}")
    return {"data": project}


@router.patch("/{project_id}", response_model=DataResponse[ProjectResponse])
def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "project", "update")
    project = ctx.db.get_or_404(Project, project_id, "Project")

    update_data = project_data.model_dump(exclude_unset=True)
    if update_data.get("client_id"):
        ctx.db.get_or_404(ConsultingClient, update_data["client_id"], "Client")

    old_status = project.status
    # Un-archiving brings the project back under the quota
    if old_status == ProjectStatus.ARCHIVED.value and update_data.get("status", old_status) != old_status:
        enforce_plan_limit(ctx.db.session, ctx.tenant_id, "projects")

    for field, value in update_data.items():
        setattr(project, field, value)

    log_activity(
        ctx.db, ctx, change_action(old_status, update_data), "project", project.id,
        change_metadata(old_status, update_data), get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(project)

    logger.info(f"Project updated: {project.id} by {ctx.user_id}")
    return {"data": project}


@router.delete("/{project_id}", response_model=DataResponse[Deleted])
def delete_project(
    project_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    """Delete a project and everything recorded under it."""
    require_permission(ctx, "project", "delete")
    project = ctx.db.get_or_404(Project, project_id, "Project")

    ctx.db.delete(project)
    log_activity(ctx.db, ctx, "delete", "project", project_id, {"name": project.name}, get_client_ip(request))
    ctx.db.commit()

    logger.info(f"Project deleted: {project_id} by {ctx.user_id}")
    return deleted()

"""
Nonconformity Endpoints

CRUD for nonconformities plus the one-per-NC root-cause analysis.
Closing an NC stamps closed_at; reopening clears it.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional

from isoqms.models.project import Project
from isoqms.models.nonconformity import (
    Nonconformity,
    NonconformityStatus,
    NonconformitySeverity,
    RootCause,
)
from isoqms.schemas.nonconformity import (
    NonconformityCreate,
    NonconformityUpdate,
    NonconformityResponse,
    NonconformityDetail,
    RootCauseUpsert,
    RootCauseResponse,
)
from isoqms.api.deps import get_request_context, ensure_member_ref, Pagination
from isoqms.api.responses import DataResponse, PageResponse, Deleted, paginate, deleted
from isoqms.core.exceptions import NotFoundError
from isoqms.core.permissions import require_permission
from isoqms.core.tenancy import RequestContext
from isoqms.services.activity import log_activity, get_client_ip, change_action, change_metadata
from isoqms.utils.codes import next_code, NONCONFORMITY
from isoqms.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants/{tenant_slug}/nonconformities", tags=["nonconformities"])


@router.get("", response_model=PageResponse[NonconformityResponse])
def list_nonconformities(
    project_id: Optional[str] = Query(None, alias="projectId"),
    status: Optional[NonconformityStatus] = None,
    severity: Optional[NonconformitySeverity] = None,
    search: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "nonconformity", "read")

    query = ctx.db.query(Nonconformity)
    if project_id:
        query = query.filter(Nonconformity.project_id == project_id)
    if status:
        query = query.filter(Nonconformity.status == status.value)
    if severity:
        query = query.filter(Nonconformity.severity == severity.value)
    if search:
        query = query.filter(Nonconformity.title.ilike(f"%{search}%"))

    return paginate(query.order_by(Nonconformity.created_at.desc()), pagination)


@router.get("/{nc_id}", response_model=DataResponse[NonconformityDetail])
def get_nonconformity(
    nc_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "nonconformity", "read")
    return {"data": ctx.db.get_or_404(Nonconformity, nc_id, "Nonconformity")}


@router.post("", response_model=DataResponse[NonconformityResponse], status_code=status.HTTP_201_CREATED)
def create_nonconformity(
    nc_data: NonconformityCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "nonconformity", "create")
    ctx.db.get_or_404(Project, nc_data.project_id, "Project")
    ensure_member_ref(ctx, nc_data.responsible_id)

    nc = ctx.db.add(Nonconformity(
        code=next_code(ctx.db, Nonconformity, NONCONFORMITY),
        status=NonconformityStatus.OPEN.value,
        **nc_data.model_dump()
    ))
    ctx.db.flush()
    log_activity(ctx.db, ctx, "create", "nonconformity", nc.id, {"code": nc.code}, get_client_ip(request))
    ctx.db.commit()
    ctx.db.refresh(nc)

    logger.info(f"Nonconformity created: {nc.code} ({nc.id}) by {ctx.user_id}")
    return {"data": nc}


@router.patch("/{nc_id}", response_model=DataResponse[NonconformityResponse])
def update_nonconformity(
    nc_id: str,
    nc_data: NonconformityUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "nonconformity", "update")
    nc = ctx.db.get_or_404(Nonconformity, nc_id, "Nonconformity")

    update_data = nc_data.model_dump(exclude_unset=True)
    if "responsible_id" in update_data:
        ensure_member_ref(ctx, update_data["responsible_id"])

    old_status = nc.status
    for field, value in update_data.items():
        setattr(nc, field, value)

    if "status" in update_data:
        if nc.status == NonconformityStatus.CLOSED.value and old_status != NonconformityStatus.CLOSED.value:
            nc.closed_at = datetime.utcnow()
        elif nc.status != NonconformityStatus.CLOSED.value:
            nc.closed_at = None

    log_activity(
        ctx.db, ctx, change_action(old_status, update_data), "nonconformity", nc.id,
        change_metadata(old_status, update_data), get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(nc)

    logger.info(f"Nonconformity updated: {nc.id} by {ctx.user_id}")
    return {"data": nc}


@router.delete("/{nc_id}", response_model=DataResponse[Deleted])
def delete_nonconformity(
    nc_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "nonconformity", "delete")
    nc = ctx.db.get_or_404(Nonconformity, nc_id, "Nonconformity")

    ctx.db.delete(nc)
    log_activity(ctx.db, ctx, "delete", "nonconformity", nc_id, {"code": nc.code}, get_client_ip(request))
    ctx.db.commit()
    return deleted()


@router.get("/{nc_id}/root-cause", response_model=DataResponse[RootCauseResponse])
def get_root_cause(
    nc_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "nonconformity", "read")
    ctx.db.get_or_404(Nonconformity, nc_id, "Nonconformity")

    root_cause = ctx.db.query(RootCause, RootCause.nonconformity_id == nc_id).first()
    if root_cause is None:
        raise NotFoundError("Root cause")
    return {"data": root_cause}


@router.put("/{nc_id}/root-cause", response_model=DataResponse[RootCauseResponse])
def upsert_root_cause(
    nc_id: str,
    analysis_data: RootCauseUpsert,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    """Create or replace the root-cause analysis of a nonconformity."""
    require_permission(ctx, "nonconformity", "update")
    nc = ctx.db.get_or_404(Nonconformity, nc_id, "Nonconformity")

    root_cause = ctx.db.query(RootCause, RootCause.nonconformity_id == nc.id).first()
    action = "update"
    if root_cause is None:
        root_cause = ctx.db.add(RootCause(nonconformity_id=nc.id))
        action = "create"

    root_cause.method = analysis_data.method
    root_cause.analysis = analysis_data.analysis
    root_cause.conclusion = analysis_data.conclusion

    ctx.db.flush()
    log_activity(
        ctx.db, ctx, action, "rootCause", root_cause.id,
        {"nonconformity_id": nc.id, "method": root_cause.method}, get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(root_cause)
    return {"data": root_cause}

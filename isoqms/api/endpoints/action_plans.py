"""
Action Plan Endpoints

Corrective/preventive/improvement actions, optionally linked to a
nonconformity or a risk of the same tenant.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional

from isoqms.models.project import Project
from isoqms.models.action_plan import ActionPlan, ActionStatus, ActionType
from isoqms.models.nonconformity import Nonconformity
from isoqms.models.risk import Risk
from isoqms.schemas.action_plan import ActionPlanCreate, ActionPlanUpdate, ActionPlanResponse
from isoqms.api.deps import get_request_context, ensure_member_ref, Pagination
from isoqms.api.responses import DataResponse, PageResponse, Deleted, paginate, deleted
from isoqms.core.permissions import require_permission
from isoqms.core.tenancy import RequestContext
from isoqms.services.activity import log_activity, get_client_ip, change_action, change_metadata
from isoqms.utils.codes import next_code, ACTION_PLAN
from isoqms.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants/{tenant_slug}/action-plans", tags=["action-plans"])

_DONE_STATUSES = (
    ActionStatus.COMPLETED.value,
    ActionStatus.VERIFIED.value,
    ActionStatus.EFFECTIVE.value,
    ActionStatus.INEFFECTIVE.value,
)


@router.get("", response_model=PageResponse[ActionPlanResponse])
def list_action_plans(
    project_id: Optional[str] = Query(None, alias="projectId"),
    status: Optional[ActionStatus] = None,
    type: Optional[ActionType] = None,
    nonconformity_id: Optional[str] = Query(None, alias="nonconformityId"),
    risk_id: Optional[str] = Query(None, alias="riskId"),
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "actionPlan", "read")

    query = ctx.db.query(ActionPlan)
    if project_id:
        query = query.filter(ActionPlan.project_id == project_id)
    if status:
        query = query.filter(ActionPlan.status == status.value)
    if type:
        query = query.filter(ActionPlan.type == type.value)
    if nonconformity_id:
        query = query.filter(ActionPlan.nonconformity_id == nonconformity_id)
    if risk_id:
        query = query.filter(ActionPlan.risk_id == risk_id)

    return paginate(query.order_by(ActionPlan.created_at.desc()), pagination)


@router.get("/{action_id}", response_model=DataResponse[ActionPlanResponse])
def get_action_plan(
    action_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "actionPlan", "read")
    return {"data": ctx.db.get_or_404(ActionPlan, action_id, "Action plan")}


@router.post("", response_model=DataResponse[ActionPlanResponse], status_code=status.HTTP_201_CREATED)
def create_action_plan(
    action_data: ActionPlanCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "actionPlan", "create")
    ctx.db.get_or_404(Project, action_data.project_id, "Project")
    if action_data.nonconformity_id:
        ctx.db.get_or_404(Nonconformity, action_data.nonconformity_id, "Nonconformity")
    if action_data.risk_id:
        ctx.db.get_or_404(Risk, action_data.risk_id, "Risk")
    ensure_member_ref(ctx, action_data.responsible_id)

    action = ctx.db.add(ActionPlan(
        code=next_code(ctx.db, ActionPlan, ACTION_PLAN),
        status=ActionStatus.PLANNED.value,
        **action_data.model_dump()
    ))
    ctx.db.flush()
    log_activity(ctx.db, ctx, "create", "actionPlan", action.id, {"code": action.code}, get_client_ip(request))
    ctx.db.commit()
    ctx.db.refresh(action)

    logger.info(f"Action plan created: {action.code} ({action.id}) by {ctx.user_id}")
    return {"data": action}


@router.patch("/{action_id}", response_model=DataResponse[ActionPlanResponse])
def update_action_plan(
    action_id: str,
    action_data: ActionPlanUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "actionPlan", "update")
    action = ctx.db.get_or_404(ActionPlan, action_id, "Action plan")

    update_data = action_data.model_dump(exclude_unset=True)
    if "responsible_id" in update_data:
        ensure_member_ref(ctx, update_data["responsible_id"])

    old_status = action.status
    for field, value in update_data.items():
        setattr(action, field, value)

    if "status" in update_data:
        if action.status in _DONE_STATUSES:
            action.completed_at = action.completed_at or datetime.utcnow()
        else:
            action.completed_at = None
        if action.status == ActionStatus.EFFECTIVE.value:
            action.is_effective = True
        elif action.status == ActionStatus.INEFFECTIVE.value:
            action.is_effective = False

    log_activity(
        ctx.db, ctx, change_action(old_status, update_data), "actionPlan", action.id,
        change_metadata(old_status, update_data), get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(action)
    return {"data": action}


@router.delete("/{action_id}", response_model=DataResponse[Deleted])
def delete_action_plan(
    action_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "actionPlan", "delete")
    action = ctx.db.get_or_404(ActionPlan, action_id, "Action plan")

    ctx.db.delete(action)
    log_activity(ctx.db, ctx, "delete", "actionPlan", action_id, {"code": action.code}, get_client_ip(request))
    ctx.db.commit()
    return deleted()

"""
Policy Endpoints
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional

from isoqms.models.project import Project
from isoqms.models.policy import Policy, PolicyStatus
from isoqms.schemas.policy import PolicyCreate, PolicyUpdate, PolicyResponse
from isoqms.api.deps import get_request_context, ensure_member_ref, Pagination
from isoqms.api.responses import DataResponse, PageResponse, Deleted, paginate, deleted
from isoqms.core.permissions import require_permission
from isoqms.core.tenancy import RequestContext
from isoqms.services.activity import log_activity, get_client_ip, change_action, change_metadata
from isoqms.utils.codes import next_code, POLICY

router = APIRouter(prefix="/tenants/{tenant_slug}/policies", tags=["policies"])

_APPROVED_STATES = (PolicyStatus.APPROVED.value, PolicyStatus.PUBLISHED.value)
_REWORK_STATES = (PolicyStatus.DRAFT.value, PolicyStatus.IN_REVIEW.value)


@router.get("", response_model=PageResponse[PolicyResponse])
def list_policies(
    project_id: Optional[str] = Query(None, alias="projectId"),
    status: Optional[PolicyStatus] = None,
    category: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "policy", "read")

    query = ctx.db.query(Policy)
    if project_id:
        query = query.filter(Policy.project_id == project_id)
    if status:
        query = query.filter(Policy.status == status.value)
    if category:
        query = query.filter(Policy.category == category)

    return paginate(query.order_by(Policy.created_at.desc()), pagination)


@router.get("/{policy_id}", response_model=DataResponse[PolicyResponse])
def get_policy(
    policy_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "policy", "read")
    return {"data": ctx.db.get_or_404(Policy, policy_id, "Policy")}


@router.post("", response_model=DataResponse[PolicyResponse], status_code=status.HTTP_201_CREATED)
def create_policy(
    policy_data: PolicyCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "policy", "create")
    ctx.db.get_or_404(Project, policy_data.project_id, "Project")
    ensure_member_ref(ctx, policy_data.reviewer_id, "reviewer_id")
    ensure_member_ref(ctx, policy_data.approver_id, "approver_id")

    policy = ctx.db.add(Policy(
        code=next_code(ctx.db, Policy, POLICY),
        status=PolicyStatus.DRAFT.value,
        version="1.0",
        **policy_data.model_dump()
    ))
    ctx.db.flush()
    log_activity(ctx.db, ctx, "create", "policy", policy.id, {"code": policy.code}, get_client_ip(request))
    ctx.db.commit()
    ctx.db.refresh(policy)
    return {"data": policy}


@router.patch("/{policy_id}", response_model=DataResponse[PolicyResponse])
def update_policy(
    policy_id: str,
    policy_data: PolicyUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "policy", "update")
    policy = ctx.db.get_or_404(Policy, policy_id, "Policy")

    update_data = policy_data.model_dump(exclude_unset=True)
    for field in ("reviewer_id", "approver_id"):
        if field in update_data:
            ensure_member_ref(ctx, update_data[field], field)

    old_status = policy.status
    for field, value in update_data.items():
        setattr(policy, field, value)

    if policy.status == PolicyStatus.APPROVED.value and old_status != PolicyStatus.APPROVED.value:
        policy.approved_at = datetime.utcnow()
        policy.approver_id = policy.approver_id or ctx.user_id
    elif old_status in _APPROVED_STATES and policy.status in _REWORK_STATES:
        # Publishing keeps the approval stamp; sending back for rework drops it.
        policy.approved_at = None
        if "approver_id" not in update_data:
            policy.approver_id = None

    log_activity(
        ctx.db, ctx, change_action(old_status, update_data), "policy", policy.id,
        change_metadata(old_status, update_data), get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(policy)
    return {"data": policy}


@router.delete("/{policy_id}", response_model=DataResponse[Deleted])
def delete_policy(
    policy_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "policy", "delete")
    policy = ctx.db.get_or_404(Policy, policy_id, "Policy")

    ctx.db.delete(policy)
    log_activity(ctx.db, ctx, "delete", "policy", policy_id, {"code": policy.code}, get_client_ip(request))
    ctx.db.commit()
    return deleted()

"""
Tenant Endpoints

Creating a tenant, listing the caller's tenants, and tenant settings.
"""
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from isoqms.database import get_db
from isoqms.models.user import User
from isoqms.models.tenant import Tenant
from isoqms.models.membership import TenantMember
from isoqms.schemas.tenant import TenantCreate, TenantUpdate, TenantResponse, MyTenantResponse
from isoqms.api.deps import get_current_user, get_request_context
from isoqms.api.responses import DataResponse
from isoqms.core.permissions import has_permission, require_permission
from isoqms.core.plan_limits import check_plan_limit, get_plan_features, has_feature, FEATURES
from isoqms.core.tenancy import RequestContext
from isoqms.services.tenants import create_tenant
from isoqms.services.activity import log_activity, get_client_ip
from isoqms.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["tenants"])


@router.post("/tenants", response_model=DataResponse[TenantResponse], status_code=status.HTTP_201_CREATED)
def create(
    tenant_data: TenantCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a tenant with the caller as its first tenant_admin.

    The tenant starts in trial on the professional plan.
    """
    tenant = create_tenant(db, current_user, tenant_data.name, tenant_data.cnpj)
    return {"data": tenant}


@router.get("/user/tenants", response_model=DataResponse[List[MyTenantResponse]])
def my_tenants(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Every tenant the caller belongs to, with the caller's role in each."""
    memberships = db.query(TenantMember).join(Tenant, TenantMember.tenant_id == Tenant.id).filter(
        TenantMember.user_id == current_user.id
    ).order_by(Tenant.name).all()
    return {"data": memberships}


def _load_tenant(ctx: RequestContext) -> Tenant:
    return ctx.db.session.get(Tenant, ctx.tenant_id)


@router.get("/tenants/{tenant_slug}", response_model=DataResponse[TenantResponse])
def get_tenant(ctx: RequestContext = Depends(get_request_context)):
    """Any member sees the tenant; settings and cnpj only with settings:read."""
    tenant = TenantResponse.model_validate(_load_tenant(ctx))
    if not has_permission(ctx.role, "settings", "read"):
        tenant = tenant.model_copy(update={"settings": {}, "cnpj": None})
    return {"data": tenant}


@router.patch("/tenants/{tenant_slug}", response_model=DataResponse[TenantResponse])
def update_tenant(
    tenant_data: TenantUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "settings", "update")
    tenant = _load_tenant(ctx)

    update_data = tenant_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(tenant, field, value)

    log_activity(
        ctx.db, ctx, "update", "tenant", tenant.id,
        {"fields": sorted(update_data)}, get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(tenant)

    logger.info(f"Tenant updated: {tenant.id} by {ctx.user_id}")
    return {"data": tenant}


@router.get("/tenants/{tenant_slug}/subscription", response_model=DataResponse[Dict[str, Any]])
def subscription_usage(ctx: RequestContext = Depends(get_request_context)):
    """Plan quotas, feature flags and current usage for the billing page."""
    require_permission(ctx, "billing", "read")

    session = ctx.db.session
    plan = get_plan_features(session, ctx.tenant_id)
    usage = {}
    for resource in ("users", "projects", "clients"):
        check = check_plan_limit(session, ctx.tenant_id, resource)
        usage[resource] = {"current": check.current, "limit": check.limit, "allowed": check.allowed}

    return {
        "data": {
            "plan": plan,
            "features": {name: has_feature(plan, name) for name in FEATURES},
            "usage": usage,
        }
    }

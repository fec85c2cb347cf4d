"""
Admin Endpoints

Platform operator routes. Every route requires User.is_super_admin and
works across tenants, so they use the raw session rather than a
tenant-scoped one.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional

from isoqms.database import get_db
from isoqms.models.user import User
from isoqms.models.tenant import Tenant, TenantStatus
from isoqms.models.membership import TenantMember
from isoqms.models.project import Project
from isoqms.models.subscription import Plan, Subscription, SubscriptionStatus
from isoqms.schemas.admin import (
    AdminStats,
    AdminTenantResponse,
    PlanCreate,
    PlanResponse,
    PlanUpdate,
    TenantStatusUpdate,
)
from isoqms.api.deps import require_super_admin, Pagination
from isoqms.api.responses import DataResponse, PageResponse
from isoqms.core.exceptions import ConflictError, NotFoundError
from isoqms.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _tenant_view(db: Session, tenant: Tenant) -> dict:
    member_count = db.query(func.count(TenantMember.id)).filter(TenantMember.tenant_id == tenant.id).scalar()
    subscription = tenant.subscription
    return {
        "id": tenant.id,
        "name": tenant.name,
        "slug": tenant.slug,
        "cnpj": tenant.cnpj,
        "status": tenant.status,
        "trial_ends_at": tenant.trial_ends_at,
        "created_at": tenant.created_at,
        "member_count": member_count or 0,
        "plan_slug": subscription.plan.slug if subscription else None,
        "subscription_status": subscription.status if subscription else None,
    }


@router.get("/tenants", response_model=PageResponse[AdminTenantResponse])
def list_tenants(
    status: Optional[TenantStatus] = None,
    search: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(),
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    query = db.query(Tenant)
    if status:
        query = query.filter(Tenant.status == status.value)
    if search:
        query = query.filter(Tenant.name.ilike(f"%{search}%") | Tenant.slug.ilike(f"%{search}%"))

    total = query.count()
    tenants = query.order_by(Tenant.created_at.desc()).offset(pagination.offset).limit(pagination.page_size).all()
    return {
        "data": [_tenant_view(db, tenant) for tenant in tenants],
        "total": total,
        "page": pagination.page,
        "pageSize": pagination.page_size,
    }


@router.get("/tenants/{tenant_id}", response_model=DataResponse[AdminTenantResponse])
def get_tenant(
    tenant_id: str,
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise NotFoundError("Tenant")
    return {"data": _tenant_view(db, tenant)}


@router.patch("/tenants/{tenant_id}/status", response_model=DataResponse[AdminTenantResponse])
def update_tenant_status(
    tenant_id: str,
    status_data: TenantStatusUpdate,
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    """
    Suspend, reactivate or cancel a tenant.

    Suspended and cancelled tenants are refused by the request context,
    so this locks every member out at once.
    """
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise NotFoundError("Tenant")

    old_status = tenant.status
    tenant.status = status_data.status
    db.commit()
    db.refresh(tenant)

    log_security_event(
        "tenant_status_changed",
        tenant_id=tenant.id,
        user_id=admin.id,
        details={"from": old_status, "to": tenant.status},
        severity="INFO"
    )
    return {"data": _tenant_view(db, tenant)}


@router.get("/stats", response_model=DataResponse[AdminStats])
def get_stats(
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    by_status = dict(
        db.query(Tenant.status, func.count(Tenant.id)).group_by(Tenant.status).all()
    )
    return {"data": {
        "total_tenants": sum(by_status.values()),
        "tenants_by_status": by_status,
        "total_users": db.query(func.count(User.id)).scalar() or 0,
        "total_projects": db.query(func.count(Project.id)).scalar() or 0,
        "active_subscriptions": db.query(func.count(Subscription.id)).filter(
            Subscription.status.in_([SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value])
        ).scalar() or 0,
    }}


@router.get("/plans", response_model=DataResponse[List[PlanResponse]])
def list_plans(
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    return {"data": db.query(Plan).order_by(Plan.price_monthly).all()}


@router.post("/plans", response_model=DataResponse[PlanResponse], status_code=status.HTTP_201_CREATED)
def create_plan(
    plan_data: PlanCreate,
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    if db.query(Plan).filter(Plan.slug == plan_data.slug).first():
        raise ConflictError(f"Plan '{plan_data.slug}' already exists")

    plan = Plan(**plan_data.model_dump())
    db.add(plan)
    db.commit()
    db.refresh(plan)

    logger.info(f"Plan created: {plan.slug} by {admin.id}")
    return {"data": plan}


@router.patch("/plans/{plan_id}", response_model=DataResponse[PlanResponse])
def update_plan(
    plan_id: str,
    plan_data: PlanUpdate,
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    plan = db.query(Plan).filter(Plan.id == plan_id).first()
    if not plan:
        raise NotFoundError("Plan")

    for field, value in plan_data.model_dump(exclude_unset=True).items():
        setattr(plan, field, value)

    db.commit()
    db.refresh(plan)
    logger.info(f"Plan updated: {plan.slug} by {admin.id}")
    return {"data": plan}

"""
Plan Limits

Quotas and feature flags per subscription plan. The three default plans
are seeded into the plans table by init_db and used as a fallback when a
tenant has no subscription.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session

from isoqms.core.exceptions import PlanLimitError
from isoqms.models.subscription import Plan, Subscription
from isoqms.models.membership import TenantMember
from isoqms.models.client import ConsultingClient
from isoqms.models.project import Project, ProjectStatus
from isoqms.utils.logging import get_logger

logger = get_logger(__name__)

UNLIMITED = 999999

_BASIC_FEATURES = {
    "audits": True,
    "nonconformities": True,
    "actionPlans": True,
    "documents": True,
}

DEFAULT_PLANS: Dict[str, Dict[str, Any]] = {
    "starter": {
        "name": "Starter",
        "price_monthly": Decimal("197.00"),
        "max_users": 3,
        "max_projects": 3,
        "max_standards": 1,
        "max_storage": 2048,
        "max_clients": 3,
        "features": {
            **_BASIC_FEATURES,
            "indicators": False,
            "risks": False,
            "soa": False,
            "managementReview": False,
            "customReports": False,
            "apiAccess": False,
        },
    },
    "professional": {
        "name": "Professional",
        "price_monthly": Decimal("497.00"),
        "max_users": 10,
        "max_projects": 15,
        "max_standards": 3,
        "max_storage": 10240,
        "max_clients": 15,
        "features": {
            **_BASIC_FEATURES,
            "indicators": True,
            "risks": True,
            "soa": True,
            "managementReview": True,
            "customReports": True,
            "apiAccess": False,
        },
    },
    "enterprise": {
        "name": "Enterprise",
        "price_monthly": Decimal("997.00"),
        "max_users": UNLIMITED,
        "max_projects": UNLIMITED,
        "max_standards": UNLIMITED,
        "max_storage": UNLIMITED,
        "max_clients": UNLIMITED,
        "features": {
            **_BASIC_FEATURES,
            "indicators": True,
            "risks": True,
            "soa": True,
            "managementReview": True,
            "customReports": True,
            "apiAccess": True,
        },
    },
}

FEATURES = tuple(DEFAULT_PLANS["enterprise"]["features"])

# Resources with a counter in this system -> Plan quota column
_LIMIT_COLUMNS = {
    "users": "max_users",
    "projects": "max_projects",
    "clients": "max_clients",
}


@dataclass
class PlanLimitCheck:
    allowed: bool
    current: int
    limit: int


def _get_subscription(db: Session, tenant_id: str) -> Optional[Subscription]:
    return db.query(Subscription).filter(Subscription.tenant_id == tenant_id).first()


def _count(db: Session, tenant_id: str, resource: str) -> int:
    if resource == "users":
        return db.query(TenantMember).filter(TenantMember.tenant_id == tenant_id).count()
    if resource == "clients":
        return db.query(ConsultingClient).filter(ConsultingClient.tenant_id == tenant_id).count()
    return db.query(Project).filter(
        Project.tenant_id == tenant_id,
        Project.status != ProjectStatus.ARCHIVED.value
    ).count()


def check_plan_limit(db: Session, tenant_id: str, resource: str) -> PlanLimitCheck:
    """
    Compare the tenant's usage of resource against its plan quota.

    A tenant without a subscription is reported against the starter
    limits and always allowed.
    """
    if resource not in _LIMIT_COLUMNS:
        raise ValueError(f"Unknown plan resource: {resource}")
    column = _LIMIT_COLUMNS[resource]

    subscription = _get_subscription(db, tenant_id)
    if subscription is None or subscription.plan is None:
        return PlanLimitCheck(allowed=True, current=0, limit=DEFAULT_PLANS["starter"][column])

    current = _count(db, tenant_id, resource)
    limit = getattr(subscription.plan, column)
    return PlanLimitCheck(allowed=current < limit, current=current, limit=limit)


def enforce_plan_limit(db: Session, tenant_id: str, resource: str) -> None:
    check = check_plan_limit(db, tenant_id, resource)
    if not check.allowed:
        logger.info(
            f"Plan limit reached for {resource}: {check.current}/{check.limit}",
            extra={"tenant_id": tenant_id}
        )
        raise PlanLimitError(resource, check.current, check.limit)


def get_plan_features(db: Session, tenant_id: str) -> Optional[Dict[str, Any]]:
    """Quotas and feature flags of the tenant's plan, or None without a subscription."""
    subscription = _get_subscription(db, tenant_id)
    if subscription is None or subscription.plan is None:
        return None

    plan = subscription.plan
    return {
        "max_users": plan.max_users,
        "max_projects": plan.max_projects,
        "max_standards": plan.max_standards,
        "max_storage": plan.max_storage,
        "max_clients": plan.max_clients,
        "features": dict(plan.features or {}),
    }


def has_feature(plan_features: Optional[Dict[str, Any]], feature: str) -> bool:
    if not plan_features:
        return False
    return plan_features.get("features", {}).get(feature) is True


def get_or_create_plan(db: Session, slug: str) -> Plan:
    """Load a plan by slug, creating it from DEFAULT_PLANS if missing. Does not commit."""
    plan = db.query(Plan).filter(Plan.slug == slug).first()
    if plan is None:
        defaults = DEFAULT_PLANS[slug]
        plan = Plan(slug=slug, **{**defaults, "features": dict(defaults["features"])})
        db.add(plan)
        db.flush()
    return plan


def seed_default_plans(db: Session) -> None:
    for slug in DEFAULT_PLANS:
        get_or_create_plan(db, slug)
    db.commit()
    logger.info("Default plans ensured")

"""
Admin Schemas

Platform operator views: all tenants, plans and global counters.
"""
from pydantic import BaseModel, Field
from typing import Dict, Optional
from decimal import Decimal
from datetime import datetime
from isoqms.models.tenant import TenantStatus
from isoqms.schemas.common import reject_null


class TenantStatusUpdate(BaseModel):
    status: TenantStatus

    class Config:
        use_enum_values = True


class AdminTenantResponse(BaseModel):
    id: str
    name: str
    slug: str
    cnpj: Optional[str] = None
    status: str
    trial_ends_at: Optional[datetime] = None
    created_at: datetime
    member_count: int = 0
    plan_slug: Optional[str] = None
    subscription_status: Optional[str] = None


class PlanBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    price_monthly: Decimal = Field(..., ge=0)
    max_users: int = Field(..., ge=1)
    max_projects: int = Field(..., ge=1)
    max_standards: int = Field(..., ge=1)
    max_storage: int = Field(..., ge=1)
    max_clients: int = Field(..., ge=1)
    features: Dict[str, bool] = {}
    is_active: bool = True


class PlanCreate(PlanBase):
    slug: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z0-9-]+$")


class PlanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    price_monthly: Optional[Decimal] = Field(None, ge=0)
    max_users: Optional[int] = Field(None, ge=1)
    max_projects: Optional[int] = Field(None, ge=1)
    max_standards: Optional[int] = Field(None, ge=1)
    max_storage: Optional[int] = Field(None, ge=1)
    max_clients: Optional[int] = Field(None, ge=1)
    features: Optional[Dict[str, bool]] = None
    is_active: Optional[bool] = None

    check_not_null = reject_null(
        "name", "price_monthly", "max_users", "max_projects", "max_standards",
        "max_storage", "max_clients", "features", "is_active",
    )


class PlanResponse(PlanBase):
    id: str
    slug: str
    created_at: datetime

    class Config:
        from_attributes = True


class AdminStats(BaseModel):
    total_tenants: int
    tenants_by_status: Dict[str, int]
    total_users: int
    total_projects: int
    active_subscriptions: int

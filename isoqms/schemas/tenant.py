"""
Tenant Schemas
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime
from isoqms.models.membership import OrgRole
from isoqms.schemas.common import reject_null


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    cnpj: Optional[str] = Field(None, max_length=32)


class TenantUpdate(BaseModel):
    """Tenant-editable settings. Status is changed through /admin only."""
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    cnpj: Optional[str] = Field(None, max_length=32)
    logo: Optional[str] = Field(None, max_length=512)
    settings: Optional[Dict[str, Any]] = None

    check_not_null = reject_null("name", "settings")


class TenantResponse(BaseModel):
    id: str
    name: str
    slug: str
    cnpj: Optional[str] = None
    logo: Optional[str] = None
    status: str
    trial_ends_at: Optional[datetime] = None
    settings: Dict[str, Any] = {}
    created_at: datetime

    class Config:
        from_attributes = True


class MyTenantResponse(BaseModel):
    """One entry of GET /user/tenants: a tenant plus the caller's role in it."""
    tenant: TenantResponse
    role: OrgRole
    joined_at: datetime

    class Config:
        from_attributes = True

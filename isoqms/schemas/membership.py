"""
Membership and Invitation Schemas
"""
from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from isoqms.models.membership import OrgRole
from isoqms.schemas.user import UserBrief


class MemberResponse(BaseModel):
    id: str
    tenant_id: str
    user_id: str
    role: OrgRole
    joined_at: datetime
    user: UserBrief

    class Config:
        from_attributes = True


class MemberRoleUpdate(BaseModel):
    role: OrgRole


class InvitationCreate(BaseModel):
    email: EmailStr
    role: OrgRole


class InvitationResponse(BaseModel):
    id: str
    tenant_id: str
    email: str
    role: OrgRole
    token: str
    status: str
    invited_by_id: Optional[str] = None
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InvitationInfo(BaseModel):
    """Public view of an invitation, looked up by token."""
    valid: bool
    expired: bool
    tenant_name: str
    tenant_slug: str
    email: str
    role: OrgRole
    status: str


class InvitationAccepted(BaseModel):
    message: str
    tenant_slug: str
    role: OrgRole

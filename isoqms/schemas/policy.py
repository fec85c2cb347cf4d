"""
Policy Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from isoqms.models.policy import PolicyStatus
from isoqms.schemas.common import reject_null


class PolicyCreate(BaseModel):
    project_id: str
    title: str = Field(..., min_length=3, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    content: Optional[str] = None
    reviewer_id: Optional[str] = None
    approver_id: Optional[str] = None
    next_review_date: Optional[date] = None


class PolicyUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    status: Optional[PolicyStatus] = None
    version: Optional[str] = Field(None, max_length=20)
    content: Optional[str] = None
    reviewer_id: Optional[str] = None
    approver_id: Optional[str] = None
    next_review_date: Optional[date] = None

    check_not_null = reject_null("title", "status", "version")

    class Config:
        use_enum_values = True


class PolicyResponse(BaseModel):
    id: str
    tenant_id: str
    project_id: str
    code: str
    title: str
    category: Optional[str] = None
    status: str
    version: str
    content: Optional[str] = None
    reviewer_id: Optional[str] = None
    approver_id: Optional[str] = None
    approved_at: Optional[datetime] = None
    next_review_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

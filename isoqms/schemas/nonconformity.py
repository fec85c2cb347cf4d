"""
Nonconformity Schemas
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from isoqms.models.nonconformity import (
    NonconformityOrigin,
    NonconformitySeverity,
    NonconformityStatus,
    RootCauseMethod,
)
from isoqms.schemas.action_plan import ActionPlanResponse
from isoqms.schemas.common import reject_null


class NonconformityCreate(BaseModel):
    project_id: str
    title: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=1)
    origin: NonconformityOrigin
    type: Optional[str] = Field(None, max_length=50)
    severity: NonconformitySeverity
    responsible_id: Optional[str] = None
    due_date: Optional[date] = None

    class Config:
        use_enum_values = True


class NonconformityUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = None
    origin: Optional[NonconformityOrigin] = None
    type: Optional[str] = Field(None, max_length=50)
    severity: Optional[NonconformitySeverity] = None
    status: Optional[NonconformityStatus] = None
    responsible_id: Optional[str] = None
    due_date: Optional[date] = None

    check_not_null = reject_null("title", "description", "origin", "severity", "status")

    class Config:
        use_enum_values = True


class RootCauseUpsert(BaseModel):
    method: RootCauseMethod
    analysis: Dict[str, Any]
    conclusion: Optional[str] = None

    class Config:
        use_enum_values = True


class RootCauseResponse(BaseModel):
    id: str
    nonconformity_id: str
    method: str
    analysis: Dict[str, Any]
    conclusion: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class NonconformityResponse(BaseModel):
    id: str
    tenant_id: str
    project_id: str
    code: str
    title: str
    description: str
    origin: str
    type: Optional[str] = None
    severity: str
    status: str
    responsible_id: Optional[str] = None
    due_date: Optional[date] = None
    closed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class NonconformityDetail(NonconformityResponse):
    root_cause: Optional[RootCauseResponse] = None
    action_plans: List[ActionPlanResponse] = []

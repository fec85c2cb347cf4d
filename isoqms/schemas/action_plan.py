"""
Action Plan Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from isoqms.models.action_plan import ActionType, ActionStatus
from isoqms.schemas.common import reject_null


class ActionPlanCreate(BaseModel):
    project_id: str
    title: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=1)
    type: ActionType
    responsible_id: Optional[str] = None
    nonconformity_id: Optional[str] = None
    risk_id: Optional[str] = None
    due_date: Optional[date] = None

    class Config:
        use_enum_values = True


class ActionPlanUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = None
    type: Optional[ActionType] = None
    status: Optional[ActionStatus] = None
    responsible_id: Optional[str] = None
    due_date: Optional[date] = None
    verification_notes: Optional[str] = None
    is_effective: Optional[bool] = None

    check_not_null = reject_null("title", "description", "type", "status")

    class Config:
        use_enum_values = True


class ActionPlanResponse(BaseModel):
    id: str
    tenant_id: str
    project_id: str
    code: str
    title: str
    description: str
    type: str
    status: str
    responsible_id: Optional[str] = None
    nonconformity_id: Optional[str] = None
    risk_id: Optional[str] = None
    due_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    verification_notes: Optional[str] = None
    is_effective: Optional[bool] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

"""
Risk Schemas

probability / impact are validated to 1..5 here; risk_level is always
computed server-side and never accepted from the client.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from isoqms.models.risk import RiskCategory, RiskTreatment, RiskStatus
from isoqms.schemas.common import reject_null


class RiskCreate(BaseModel):
    project_id: str
    title: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=1)
    category: RiskCategory
    probability: int = Field(..., ge=1, le=5)
    impact: int = Field(..., ge=1, le=5)
    impact_dimensions: Dict[str, Any] = {}
    treatment: Optional[RiskTreatment] = None
    treatment_plan: Optional[str] = None
    responsible_id: Optional[str] = None
    next_review_date: Optional[date] = None

    class Config:
        use_enum_values = True


class RiskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = None
    category: Optional[RiskCategory] = None
    probability: Optional[int] = Field(None, ge=1, le=5)
    impact: Optional[int] = Field(None, ge=1, le=5)
    impact_dimensions: Optional[Dict[str, Any]] = None
    treatment: Optional[RiskTreatment] = None
    treatment_plan: Optional[str] = None
    status: Optional[RiskStatus] = None
    residual_probability: Optional[int] = Field(None, ge=1, le=5)
    residual_impact: Optional[int] = Field(None, ge=1, le=5)
    responsible_id: Optional[str] = None
    next_review_date: Optional[date] = None
    review_notes: Optional[str] = None

    check_not_null = reject_null(
        "title", "description", "category", "probability", "impact",
        "impact_dimensions", "status",
    )

    class Config:
        use_enum_values = True


class RiskReview(BaseModel):
    """Periodic review: re-scores the risk and leaves a history entry."""
    probability: int = Field(..., ge=1, le=5)
    impact: int = Field(..., ge=1, le=5)
    residual_probability: Optional[int] = Field(None, ge=1, le=5)
    residual_impact: Optional[int] = Field(None, ge=1, le=5)
    status: Optional[RiskStatus] = None
    review_notes: Optional[str] = None
    next_review_date: Optional[date] = None

    class Config:
        use_enum_values = True


class RiskHistoryResponse(BaseModel):
    id: str
    risk_id: str
    probability: int
    impact: int
    risk_level: str
    residual_probability: Optional[int] = None
    residual_impact: Optional[int] = None
    status: str
    review_notes: Optional[str] = None
    reviewed_by_id: Optional[str] = None
    reviewed_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class RiskResponse(BaseModel):
    id: str
    tenant_id: str
    project_id: str
    code: str
    title: str
    description: str
    category: str
    probability: int
    impact: int
    risk_level: str
    impact_dimensions: Dict[str, Any] = {}
    treatment: Optional[str] = None
    treatment_plan: Optional[str] = None
    status: str
    residual_probability: Optional[int] = None
    residual_impact: Optional[int] = None
    next_review_date: Optional[date] = None
    last_review_date: Optional[datetime] = None
    review_notes: Optional[str] = None
    responsible_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RiskDetail(RiskResponse):
    history: List[RiskHistoryResponse] = []

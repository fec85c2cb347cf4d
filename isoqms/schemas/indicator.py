"""
Indicator Schemas
"""
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime
from isoqms.models.indicator import IndicatorFrequency
from isoqms.schemas.common import reject_null


class IndicatorCreate(BaseModel):
    project_id: str
    name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    formula: Optional[str] = None
    unit: str = Field(..., min_length=1, max_length=50)
    frequency: IndicatorFrequency
    target: float
    lower_limit: Optional[float] = None
    upper_limit: Optional[float] = None
    responsible_id: Optional[str] = None

    class Config:
        use_enum_values = True

    @model_validator(mode="after")
    def check_limits(self):
        if self.lower_limit is not None and self.upper_limit is not None and self.lower_limit > self.upper_limit:
            raise ValueError("lower_limit must not exceed upper_limit")
        return self


class IndicatorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = None
    formula: Optional[str] = None
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    frequency: Optional[IndicatorFrequency] = None
    target: Optional[float] = None
    lower_limit: Optional[float] = None
    upper_limit: Optional[float] = None
    responsible_id: Optional[str] = None
    is_active: Optional[bool] = None

    check_not_null = reject_null("name", "unit", "frequency", "target", "is_active")

    class Config:
        use_enum_values = True


class MeasurementCreate(BaseModel):
    value: float
    period: str = Field(..., min_length=4, max_length=20)
    notes: Optional[str] = None


class MeasurementResponse(BaseModel):
    id: str
    indicator_id: str
    value: float
    period: str
    notes: Optional[str] = None
    within_limits: Optional[bool] = None
    created_by_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class IndicatorResponse(BaseModel):
    id: str
    tenant_id: str
    project_id: str
    name: str
    description: Optional[str] = None
    formula: Optional[str] = None
    unit: str
    frequency: str
    target: float
    lower_limit: Optional[float] = None
    upper_limit: Optional[float] = None
    responsible_id: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class IndicatorDetail(IndicatorResponse):
    measurements: List[MeasurementResponse] = []

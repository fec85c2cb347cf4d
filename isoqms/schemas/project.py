"""
Project Schemas

Request/response models for project operations.
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import date, datetime
from isoqms.models.project import ProjectStatus
from isoqms.schemas.common import reject_null


class ProjectBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    target_maturity: int = Field(3, ge=0, le=4)
    client_id: Optional[str] = None


class ProjectCreate(ProjectBase):
    status: ProjectStatus = ProjectStatus.PLANNING

    class Config:
        use_enum_values = True

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ProjectUpdate(BaseModel):
    """Schema for updating a project. All fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    target_maturity: Optional[int] = Field(None, ge=0, le=4)
    client_id: Optional[str] = None

    check_not_null = reject_null("name", "status", "progress", "target_maturity")

    class Config:
        use_enum_values = True


class ProjectResponse(ProjectBase):
    id: str
    tenant_id: str
    status: str
    progress: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

"""
Consulting Client Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import date, datetime
from isoqms.models.client import ClientStatus
from isoqms.schemas.common import reject_null


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    cnpj: Optional[str] = Field(None, max_length=32)
    contact_name: Optional[str] = Field(None, max_length=255)
    contact_email: Optional[EmailStr] = None
    sector: Optional[str] = Field(None, max_length=100)


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    cnpj: Optional[str] = Field(None, max_length=32)
    contact_name: Optional[str] = Field(None, max_length=255)
    contact_email: Optional[EmailStr] = None
    sector: Optional[str] = Field(None, max_length=100)
    status: Optional[ClientStatus] = None

    check_not_null = reject_null("name", "status")

    class Config:
        use_enum_values = True


class ClientResponse(BaseModel):
    id: str
    tenant_id: str
    name: str
    cnpj: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    sector: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClientProject(BaseModel):
    """Project summary shown on the client page."""
    id: str
    name: str
    status: str
    progress: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    class Config:
        from_attributes = True


class ClientDetail(ClientResponse):
    projects: List[ClientProject] = []

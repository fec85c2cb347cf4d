"""
Supplier Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import date, datetime
from isoqms.models.supplier import SupplierType, SupplierDataAccess, SupplierStatus
from isoqms.core.scoring import RiskLevel
from isoqms.schemas.common import reject_null


class SupplierCreate(BaseModel):
    project_id: str
    name: str = Field(..., min_length=2, max_length=255)
    cnpj: Optional[str] = Field(None, max_length=32)
    type: SupplierType
    category: Optional[str] = Field(None, max_length=100)
    services_provided: Optional[str] = None
    data_access: Optional[SupplierDataAccess] = None
    risk_level: RiskLevel = RiskLevel.MEDIUM
    contract_start_date: Optional[date] = None
    contract_end_date: Optional[date] = None
    next_assessment_date: Optional[date] = None
    contact_name: Optional[str] = Field(None, max_length=255)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, max_length=50)
    responsible_id: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        use_enum_values = True


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    cnpj: Optional[str] = Field(None, max_length=32)
    type: Optional[SupplierType] = None
    category: Optional[str] = Field(None, max_length=100)
    services_provided: Optional[str] = None
    data_access: Optional[SupplierDataAccess] = None
    risk_level: Optional[RiskLevel] = None
    status: Optional[SupplierStatus] = None
    contract_start_date: Optional[date] = None
    contract_end_date: Optional[date] = None
    next_assessment_date: Optional[date] = None
    contact_name: Optional[str] = Field(None, max_length=255)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, max_length=50)
    responsible_id: Optional[str] = None
    notes: Optional[str] = None

    check_not_null = reject_null("name", "type", "risk_level", "status")

    class Config:
        use_enum_values = True


class SupplierResponse(BaseModel):
    id: str
    tenant_id: str
    project_id: str
    code: str
    name: str
    cnpj: Optional[str] = None
    type: str
    category: Optional[str] = None
    services_provided: Optional[str] = None
    data_access: Optional[str] = None
    risk_level: str
    status: str
    contract_start_date: Optional[date] = None
    contract_end_date: Optional[date] = None
    next_assessment_date: Optional[date] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    responsible_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

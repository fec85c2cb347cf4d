"""
Audit Schemas
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from isoqms.models.audit import AuditType, AuditStatus, AuditConclusion, FindingClassification
from isoqms.schemas.common import reject_null


class AuditCreate(BaseModel):
    project_id: str
    title: str = Field(..., min_length=3, max_length=255)
    type: AuditType
    start_date: date
    end_date: Optional[date] = None
    lead_auditor_id: Optional[str] = None
    scope: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        use_enum_values = True


class AuditUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    type: Optional[AuditType] = None
    status: Optional[AuditStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    lead_auditor_id: Optional[str] = None
    scope: Optional[str] = None
    conclusion: Optional[AuditConclusion] = None
    notes: Optional[str] = None

    check_not_null = reject_null("title", "type", "status", "start_date")

    class Config:
        use_enum_values = True


class FindingCreate(BaseModel):
    classification: FindingClassification
    description: str = Field(..., min_length=1)
    evidence: Optional[str] = None
    nonconformity_id: Optional[str] = None

    class Config:
        use_enum_values = True


class FindingResponse(BaseModel):
    id: str
    audit_id: str
    classification: str
    description: str
    evidence: Optional[str] = None
    nonconformity_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuditResponse(BaseModel):
    id: str
    tenant_id: str
    project_id: str
    code: str
    title: str
    type: str
    status: str
    start_date: date
    end_date: Optional[date] = None
    lead_auditor_id: Optional[str] = None
    scope: Optional[str] = None
    conclusion: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AuditDetail(AuditResponse):
    findings: List[FindingResponse] = []

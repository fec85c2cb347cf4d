"""
Document Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from isoqms.models.document import DocumentType, DocumentStatus
from isoqms.schemas.common import reject_null


class DocumentCreate(BaseModel):
    project_id: str
    title: str = Field(..., min_length=3, max_length=255)
    type: DocumentType
    category: Optional[str] = Field(None, max_length=100)
    content: Optional[str] = None
    file_url: Optional[str] = Field(None, max_length=1024)
    reviewer_id: Optional[str] = None
    approver_id: Optional[str] = None
    next_review_date: Optional[date] = None

    class Config:
        use_enum_values = True


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    type: Optional[DocumentType] = None
    category: Optional[str] = Field(None, max_length=100)
    status: Optional[DocumentStatus] = None
    content: Optional[str] = None
    file_url: Optional[str] = Field(None, max_length=1024)
    reviewer_id: Optional[str] = None
    approver_id: Optional[str] = None
    next_review_date: Optional[date] = None

    check_not_null = reject_null("title", "type", "status")

    class Config:
        use_enum_values = True


class DocumentVersionCreate(BaseModel):
    """
    Start a new revision.

    The current text is archived as a version entry; the document moves to
    new_version (default: next minor) and back to draft.
    """
    change_notes: Optional[str] = None
    new_version: Optional[str] = Field(None, pattern=r"^\d+\.\d+$")
    content: Optional[str] = None


class DocumentVersionResponse(BaseModel):
    id: str
    document_id: str
    version: str
    content: Optional[str] = None
    change_notes: Optional[str] = None
    created_by_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DocumentResponse(BaseModel):
    id: str
    tenant_id: str
    project_id: str
    code: str
    title: str
    type: str
    category: Optional[str] = None
    version: str
    status: str
    content: Optional[str] = None
    file_url: Optional[str] = None
    reviewer_id: Optional[str] = None
    approver_id: Optional[str] = None
    approved_at: Optional[datetime] = None
    next_review_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

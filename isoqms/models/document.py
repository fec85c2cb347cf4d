"""
Document Models

Controlled documents (procedures, work instructions, records). Every
content change bumps the version and keeps the previous text in
DocumentVersion.
"""
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from isoqms.database import Base
from isoqms.models.mixins import TenantScopedMixin, ProjectScopedMixin
import enum


class DocumentType(str, enum.Enum):
    MANUAL = "manual"
    PROCEDURE = "procedure"
    WORK_INSTRUCTION = "work_instruction"
    FORM = "form"
    RECORD = "record"
    POLICY = "policy"
    PLAN = "plan"
    OTHER = "other"


class DocumentStatus(str, enum.Enum):
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    OBSOLETE = "obsolete"


class Document(ProjectScopedMixin, Base):
    __tablename__ = "documents"

    code = Column(String(32), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    type = Column(String(30), nullable=False)
    category = Column(String(100), nullable=True)
    version = Column(String(20), default="1.0", nullable=False)
    status = Column(String(20), default=DocumentStatus.DRAFT.value, nullable=False, index=True)
    content = Column(Text, nullable=True)
    file_url = Column(String(1024), nullable=True)

    reviewer_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approver_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    next_review_date = Column(Date, nullable=True)

    versions = relationship(
        "DocumentVersion",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentVersion.created_at.desc()"
    )

    __table_args__ = (
        Index('idx_document_tenant_status', 'tenant_id', 'status'),
    )

    def __repr__(self):
        return f"<Document {self.code} v{self.version}>"


class DocumentVersion(TenantScopedMixin, Base):
    __tablename__ = "document_versions"

    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    version = Column(String(20), nullable=False)
    content = Column(Text, nullable=True)
    change_notes = Column(Text, nullable=True)
    created_by_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    document = relationship("Document", back_populates="versions")

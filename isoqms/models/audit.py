"""
Audit Models

Audits (internal, external, certification, surveillance) and the findings
recorded during them. A finding classified as a nonconformity may link to
the NC raised from it.
"""
from sqlalchemy import Column, String, Text, Date, ForeignKey, Index
from sqlalchemy.orm import relationship
from isoqms.database import Base
from isoqms.models.mixins import TenantScopedMixin, ProjectScopedMixin
import enum


class AuditType(str, enum.Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    CERTIFICATION = "certification"
    SURVEILLANCE = "surveillance"


class AuditStatus(str, enum.Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AuditConclusion(str, enum.Enum):
    CONFORMING = "conforming"
    MINOR_NC = "minor_nc"
    MAJOR_NC = "major_nc"


class FindingClassification(str, enum.Enum):
    CONFORMITY = "conformity"
    OBSERVATION = "observation"
    OPPORTUNITY = "opportunity"
    MINOR_NC = "minor_nc"
    MAJOR_NC = "major_nc"


class Audit(ProjectScopedMixin, Base):
    __tablename__ = "audits"

    code = Column(String(32), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    status = Column(String(20), default=AuditStatus.PLANNED.value, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    lead_auditor_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    scope = Column(Text, nullable=True)
    conclusion = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)

    project = relationship("Project", back_populates="audits")
    findings = relationship(
        "AuditFinding",
        back_populates="audit",
        cascade="all, delete-orphan",
        order_by="AuditFinding.created_at"
    )

    __table_args__ = (
        Index('idx_audit_tenant_start', 'tenant_id', 'start_date'),
    )

    def __repr__(self):
        return f"<Audit {self.code} status={self.status}>"


class AuditFinding(TenantScopedMixin, Base):
    __tablename__ = "audit_findings"

    audit_id = Column(String(36), ForeignKey("audits.id", ondelete="CASCADE"), nullable=False, index=True)
    classification = Column(String(20), nullable=False)
    description = Column(Text, nullable=False)
    evidence = Column(Text, nullable=True)
    nonconformity_id = Column(
        String(36),
        ForeignKey("nonconformities.id", ondelete="SET NULL"),
        nullable=True
    )

    audit = relationship("Audit", back_populates="findings")

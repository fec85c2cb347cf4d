"""
Nonconformity Models

A nonconformity (NC) records a failure to meet a requirement. It moves
through open -> analysis -> action_defined -> in_execution ->
effectiveness_check -> closed, and may carry one root-cause analysis.
"""
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, Index, JSON
from sqlalchemy.orm import relationship
from isoqms.database import Base
from isoqms.models.mixins import TenantScopedMixin, ProjectScopedMixin
import enum


class NonconformityOrigin(str, enum.Enum):
    AUDIT = "audit"
    CUSTOMER_COMPLAINT = "customer_complaint"
    INTERNAL = "internal"
    SUPPLIER = "supplier"
    PROCESS = "process"
    MANAGEMENT_REVIEW = "management_review"


class NonconformitySeverity(str, enum.Enum):
    OBSERVATION = "observation"
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"


class NonconformityStatus(str, enum.Enum):
    OPEN = "open"
    ANALYSIS = "analysis"
    ACTION_DEFINED = "action_defined"
    IN_EXECUTION = "in_execution"
    EFFECTIVENESS_CHECK = "effectiveness_check"
    CLOSED = "closed"


class RootCauseMethod(str, enum.Enum):
    FIVE_WHYS = "five_whys"
    ISHIKAWA = "ishikawa"
    FAULT_TREE = "fault_tree"
    BRAINSTORMING = "brainstorming"


class Nonconformity(ProjectScopedMixin, Base):
    __tablename__ = "nonconformities"

    code = Column(String(32), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    origin = Column(String(30), nullable=False)
    type = Column(String(50), nullable=True)
    severity = Column(String(20), nullable=False, index=True)
    status = Column(String(30), default=NonconformityStatus.OPEN.value, nullable=False, index=True)

    responsible_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    due_date = Column(Date, nullable=True)
    closed_at = Column(DateTime, nullable=True)

    project = relationship("Project", back_populates="nonconformities")
    root_cause = relationship(
        "RootCause",
        back_populates="nonconformity",
        uselist=False,
        cascade="all, delete-orphan"
    )
    action_plans = relationship("ActionPlan", back_populates="nonconformity")

    __table_args__ = (
        Index('idx_nc_tenant_status', 'tenant_id', 'status'),
    )

    def __repr__(self):
        return f"<Nonconformity {self.code} (tenant={self.tenant_id})>"


class RootCause(TenantScopedMixin, Base):
    __tablename__ = "root_causes"

    nonconformity_id = Column(
        String(36),
        ForeignKey("nonconformities.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    method = Column(String(30), nullable=False)

    # Method-specific structure: list of whys, ishikawa categories, ...
    analysis = Column(JSON, nullable=False, default=dict)
    conclusion = Column(Text, nullable=True)

    nonconformity = relationship("Nonconformity", back_populates="root_cause")

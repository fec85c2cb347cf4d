"""
Action Plan Model

Corrective, preventive or improvement actions. An action may answer a
nonconformity or treat a risk.
"""
from sqlalchemy import Column, String, Text, Date, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from isoqms.database import Base
from isoqms.models.mixins import ProjectScopedMixin
import enum


class ActionType(str, enum.Enum):
    CORRECTIVE = "corrective"
    PREVENTIVE = "preventive"
    IMPROVEMENT = "improvement"


class ActionStatus(str, enum.Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    VERIFIED = "verified"
    EFFECTIVE = "effective"
    INEFFECTIVE = "ineffective"


class ActionPlan(ProjectScopedMixin, Base):
    __tablename__ = "action_plans"

    code = Column(String(32), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)
    status = Column(String(20), default=ActionStatus.PLANNED.value, nullable=False, index=True)

    responsible_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    nonconformity_id = Column(
        String(36),
        ForeignKey("nonconformities.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    risk_id = Column(String(36), ForeignKey("risks.id", ondelete="SET NULL"), nullable=True, index=True)

    due_date = Column(Date, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    verification_notes = Column(Text, nullable=True)
    is_effective = Column(Boolean, nullable=True)

    nonconformity = relationship("Nonconformity", back_populates="action_plans")
    risk = relationship("Risk", back_populates="action_plans")

    __table_args__ = (
        Index('idx_action_tenant_status', 'tenant_id', 'status'),
    )

    def __repr__(self):
        return f"<ActionPlan {self.code} (tenant={self.tenant_id})>"

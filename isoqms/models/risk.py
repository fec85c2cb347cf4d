"""
Risk Models

A risk is scored by probability x impact (see core.scoring). Each review
that changes the score leaves a RiskHistory snapshot behind.
"""
from sqlalchemy import Column, String, Text, Date, DateTime, Integer, ForeignKey, Index, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from isoqms.database import Base
from isoqms.models.mixins import TenantScopedMixin, ProjectScopedMixin
import enum


class RiskCategory(str, enum.Enum):
    STRATEGIC = "strategic"
    OPERATIONAL = "operational"
    COMPLIANCE = "compliance"
    FINANCIAL = "financial"
    TECHNOLOGY = "technology"
    LEGAL = "legal"


class RiskTreatment(str, enum.Enum):
    ACCEPT = "accept"
    MITIGATE = "mitigate"
    TRANSFER = "transfer"
    AVOID = "avoid"


class RiskStatus(str, enum.Enum):
    IDENTIFIED = "identified"
    ANALYZING = "analyzing"
    TREATED = "treated"
    ACCEPTED = "accepted"
    MONITORED = "monitored"
    CLOSED = "closed"


class Risk(ProjectScopedMixin, Base):
    __tablename__ = "risks"

    code = Column(String(32), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(20), nullable=False)

    # Inherent score, both 1..5
    probability = Column(Integer, nullable=False)
    impact = Column(Integer, nullable=False)
    risk_level = Column(String(20), nullable=False, index=True)
    impact_dimensions = Column(JSON, nullable=False, default=dict)

    treatment = Column(String(20), nullable=True)
    treatment_plan = Column(Text, nullable=True)
    status = Column(String(20), default=RiskStatus.IDENTIFIED.value, nullable=False, index=True)

    # Score after treatment
    residual_probability = Column(Integer, nullable=True)
    residual_impact = Column(Integer, nullable=True)

    next_review_date = Column(Date, nullable=True)
    last_review_date = Column(DateTime, nullable=True)
    review_notes = Column(Text, nullable=True)

    responsible_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    project = relationship("Project", back_populates="risks")
    history = relationship(
        "RiskHistory",
        back_populates="risk",
        cascade="all, delete-orphan",
        order_by="RiskHistory.created_at.desc()"
    )
    action_plans = relationship("ActionPlan", back_populates="risk")

    __table_args__ = (
        Index('idx_risk_tenant_level', 'tenant_id', 'risk_level'),
    )

    def __repr__(self):
        return f"<Risk {self.code} level={self.risk_level}>"


class RiskHistory(TenantScopedMixin, Base):
    __tablename__ = "risk_history"

    risk_id = Column(String(36), ForeignKey("risks.id", ondelete="CASCADE"), nullable=False, index=True)
    probability = Column(Integer, nullable=False)
    impact = Column(Integer, nullable=False)
    risk_level = Column(String(20), nullable=False)
    residual_probability = Column(Integer, nullable=True)
    residual_impact = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False)
    review_notes = Column(Text, nullable=True)
    reviewed_by_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    risk = relationship("Risk", back_populates="history")

"""
Indicator Models

Performance indicators (KPIs) with a target, optional control limits and
periodic measurements.
"""
from sqlalchemy import Column, String, Text, Float, ForeignKey, Index, Boolean
from sqlalchemy.orm import relationship
from isoqms.database import Base
from isoqms.models.mixins import TenantScopedMixin, ProjectScopedMixin
import enum


class IndicatorFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"


class Indicator(ProjectScopedMixin, Base):
    __tablename__ = "indicators"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    formula = Column(Text, nullable=True)
    unit = Column(String(50), nullable=False)
    frequency = Column(String(20), nullable=False)
    target = Column(Float, nullable=False)
    lower_limit = Column(Float, nullable=True)
    upper_limit = Column(Float, nullable=True)
    responsible_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    measurements = relationship(
        "IndicatorMeasurement",
        back_populates="indicator",
        cascade="all, delete-orphan",
        order_by="IndicatorMeasurement.period.desc()"
    )

    __table_args__ = (
        Index('idx_indicator_tenant_project', 'tenant_id', 'project_id'),
    )

    def __repr__(self):
        return f"<Indicator {self.name}>"


class IndicatorMeasurement(TenantScopedMixin, Base):
    __tablename__ = "indicator_measurements"

    indicator_id = Column(String(36), ForeignKey("indicators.id", ondelete="CASCADE"), nullable=False, index=True)
    value = Column(Float, nullable=False)
    # "2026-03", "2026-Q1", ...
    period = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    within_limits = Column(Boolean, nullable=True)
    created_by_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    indicator = relationship("Indicator", back_populates="measurements")

"""
Plan and Subscription Models

A Plan carries quotas and feature flags; each tenant has at most one
Subscription pointing at a plan.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer, Numeric, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from isoqms.database import Base
from isoqms.models.mixins import new_id
import enum


class SubscriptionStatus(str, enum.Enum):
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"


class Plan(Base):
    __tablename__ = "plans"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    slug = Column(String(50), unique=True, nullable=False, index=True)
    price_monthly = Column(Numeric(10, 2), nullable=False, default=0)

    # Quotas
    max_users = Column(Integer, nullable=False)
    max_projects = Column(Integer, nullable=False)
    max_standards = Column(Integer, nullable=False)
    max_storage = Column(Integer, nullable=False)  # MB
    max_clients = Column(Integer, nullable=False)

    features = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    subscriptions = relationship("Subscription", back_populates="plan")

    def __repr__(self):
        return f"<Plan {self.slug}>"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=new_id)

    # One subscription per tenant
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )
    plan_id = Column(String(36), ForeignKey("plans.id"), nullable=False, index=True)

    status = Column(String(20), default=SubscriptionStatus.TRIALING.value, nullable=False)
    current_period_end = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="subscription")
    plan = relationship("Plan", back_populates="subscriptions")

    def __repr__(self):
        return f"<Subscription tenant={self.tenant_id} status={self.status}>"

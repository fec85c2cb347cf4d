"""
Tenant Model

The tenant is the isolation boundary: one consulting firm or customer
organization. Every business row references a tenant and is only reachable
through a request context resolved for that tenant's slug.
"""
from sqlalchemy import Column, String, DateTime, Index, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from isoqms.database import Base
from isoqms.models.mixins import new_id
import enum


class TenantStatus(str, enum.Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=new_id)

    # Tenant identification
    name = Column(String(255), nullable=False)
    slug = Column(String(120), unique=True, nullable=False, index=True)
    cnpj = Column(String(32), nullable=True)
    logo = Column(String(512), nullable=True)

    # Lifecycle
    status = Column(String(20), default=TenantStatus.TRIAL.value, nullable=False, index=True)
    trial_ends_at = Column(DateTime, nullable=True)

    # Free-form tenant preferences (branding, locale, ...)
    settings = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    members = relationship("TenantMember", back_populates="tenant", cascade="all, delete-orphan")
    subscription = relationship(
        "Subscription",
        back_populates="tenant",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index('idx_tenant_status', 'status'),
    )

    def __repr__(self):
        return f"<Tenant {self.slug}>"

    @property
    def is_accessible(self) -> bool:
        """Suspended and cancelled tenants are locked out."""
        return self.status in (TenantStatus.TRIAL.value, TenantStatus.ACTIVE.value)

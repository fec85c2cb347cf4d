"""
Consulting Client Model

The consultancy's own customers. Projects may be run for a client; the
number of clients per tenant is a plan quota.
"""
from sqlalchemy import Column, String, Index
from sqlalchemy.orm import relationship
from isoqms.database import Base
from isoqms.models.mixins import TenantScopedMixin
import enum


class ClientStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ConsultingClient(TenantScopedMixin, Base):
    __tablename__ = "consulting_clients"

    name = Column(String(255), nullable=False)
    cnpj = Column(String(32), nullable=True)
    contact_name = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    sector = Column(String(100), nullable=True)
    status = Column(String(20), default=ClientStatus.ACTIVE.value, nullable=False, index=True)

    projects = relationship("Project", back_populates="client", order_by="Project.created_at.desc()")

    __table_args__ = (
        Index('idx_client_tenant_name', 'tenant_id', 'name'),
    )

    def __repr__(self):
        return f"<ConsultingClient {self.name} (tenant={self.tenant_id})>"

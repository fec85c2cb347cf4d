"""
Supplier Model

External providers evaluated for the management system. Codes are
SUP-NNN without a year component.
"""
from sqlalchemy import Column, String, Text, Date, ForeignKey, Index
from isoqms.database import Base
from isoqms.models.mixins import ProjectScopedMixin
import enum


class SupplierType(str, enum.Enum):
    PRODUCT = "product"
    SERVICE = "service"
    CLOUD = "cloud"
    OUTSOURCING = "outsourcing"
    CONSULTING = "consulting"
    OTHER = "other"


class SupplierDataAccess(str, enum.Enum):
    NONE = "none"
    LIMITED = "limited"
    FULL = "full"


class SupplierStatus(str, enum.Enum):
    ACTIVE = "active"
    UNDER_EVALUATION = "under_evaluation"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


class Supplier(ProjectScopedMixin, Base):
    __tablename__ = "suppliers"

    code = Column(String(32), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    cnpj = Column(String(32), nullable=True)
    type = Column(String(20), nullable=False)
    category = Column(String(100), nullable=True)
    services_provided = Column(Text, nullable=True)
    data_access = Column(String(20), nullable=True)
    risk_level = Column(String(20), default="medium", nullable=False)
    status = Column(String(20), default=SupplierStatus.ACTIVE.value, nullable=False, index=True)

    contract_start_date = Column(Date, nullable=True)
    contract_end_date = Column(Date, nullable=True)
    next_assessment_date = Column(Date, nullable=True)

    contact_name = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)

    responsible_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        Index('idx_supplier_tenant_type', 'tenant_id', 'type'),
    )

    def __repr__(self):
        return f"<Supplier {self.code} {self.name}>"

"""
Project Model

A project is one compliance engagement inside a tenant (for example an
ISO 9001 implementation for a client). Most QMS records hang off a project.
"""
from sqlalchemy import Column, String, Text, Date, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship
from isoqms.database import Base
from isoqms.models.mixins import TenantScopedMixin
import enum


class ProjectStatus(str, enum.Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Project(TenantScopedMixin, Base):
    __tablename__ = "projects"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        String(20),
        default=ProjectStatus.PLANNING.value,
        nullable=False,
        index=True
    )

    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    # 0..100 completion, 0..4 maturity target
    progress = Column(Integer, default=0, nullable=False)
    target_maturity = Column(Integer, default=3, nullable=False)

    client_id = Column(
        String(36),
        ForeignKey("consulting_clients.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Relationships
    tenant = relationship("Tenant")
    client = relationship("ConsultingClient", back_populates="projects")
    nonconformities = relationship("Nonconformity", back_populates="project", cascade="all, delete-orphan")
    risks = relationship("Risk", back_populates="project", cascade="all, delete-orphan")
    audits = relationship("Audit", back_populates="project", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_project_tenant_status', 'tenant_id', 'status'),
        Index('idx_project_tenant_name', 'tenant_id', 'name'),
    )

    def __repr__(self):
        return f"<Project {self.name} (tenant={self.tenant_id})>"

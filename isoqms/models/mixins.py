"""
Model Mixins

Columns shared by every tenant-owned table.

Every business row carries tenant_id, including child rows (findings,
history entries, measurements), so TenantScopedSession can filter any
model by tenant without joining its parent.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import declared_attr
from datetime import datetime
import uuid


def new_id() -> str:
    return str(uuid.uuid4())


class TenantScopedMixin:
    """Primary key, tenant foreign key and timestamps."""

    @declared_attr
    def id(cls):
        return Column(String(36), primary_key=True, default=new_id)

    @declared_attr
    def tenant_id(cls):
        return Column(
            String(36),
            ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )

    @declared_attr
    def created_at(cls):
        return Column(DateTime, default=datetime.utcnow, nullable=False)

    @declared_attr
    def updated_at(cls):
        return Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class ProjectScopedMixin(TenantScopedMixin):
    """Tenant-owned row that also belongs to a project."""

    @declared_attr
    def project_id(cls):
        return Column(
            String(36),
            ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )

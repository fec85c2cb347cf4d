"""
Membership Models

TenantMember binds a user to a tenant with an organization role.
Invitation is a pending offer of membership addressed to an email.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from isoqms.database import Base
from isoqms.models.mixins import new_id
import secrets
import enum


class OrgRole(str, enum.Enum):
    """
    Organization roles.

    TENANT_ADMIN: Full access including members, settings and billing
    PROJECT_MANAGER: Runs projects, cannot delete most records
    SENIOR_CONSULTANT / JUNIOR_CONSULTANT: Day-to-day compliance work
    INTERNAL_AUDITOR / EXTERNAL_AUDITOR: Audit work, mostly read-only elsewhere
    CLIENT_VIEWER: Read-only view for the consulting client
    """
    TENANT_ADMIN = "tenant_admin"
    PROJECT_MANAGER = "project_manager"
    SENIOR_CONSULTANT = "senior_consultant"
    JUNIOR_CONSULTANT = "junior_consultant"
    INTERNAL_AUDITOR = "internal_auditor"
    EXTERNAL_AUDITOR = "external_auditor"
    CLIENT_VIEWER = "client_viewer"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REVOKED = "revoked"


class TenantMember(Base):
    __tablename__ = "tenant_members"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    role = Column(
        SQLEnum(OrgRole, values_callable=_enum_values),
        nullable=False,
        default=OrgRole.JUNIOR_CONSULTANT,
        index=True
    )
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="members")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        # A user holds a single role per tenant
        Index('idx_member_tenant_user', 'tenant_id', 'user_id', unique=True),
        Index('idx_member_tenant_role', 'tenant_id', 'role'),
    )

    def __repr__(self):
        return f"<TenantMember user={self.user_id} tenant={self.tenant_id} role={self.role}>"


class Invitation(Base):
    __tablename__ = "invitations"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    email = Column(String(255), nullable=False, index=True)
    role = Column(SQLEnum(OrgRole, values_callable=_enum_values), nullable=False)
    token = Column(String(64), unique=True, nullable=False, default=lambda: secrets.token_urlsafe(32))
    status = Column(String(20), default=InvitationStatus.PENDING.value, nullable=False)
    invited_by_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant")
    invited_by = relationship("User")

    def __repr__(self):
        return f"<Invitation {self.email} tenant={self.tenant_id} status={self.status}>"

    @property
    def is_expired(self) -> bool:
        return datetime.utcnow() > self.expires_at

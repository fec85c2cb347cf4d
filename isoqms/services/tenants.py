"""
Tenant Lifecycle

Tenant creation, membership changes and invitations. Every multi-row
change here commits once; on failure the session is rolled back and the
error re-raised.
"""
import re
import time
import unicodedata
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session

from isoqms.config import get_settings
from isoqms.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from isoqms.core.plan_limits import enforce_plan_limit, get_or_create_plan
from isoqms.core.tenancy import RequestContext, TenantScopedSession
from isoqms.models.membership import Invitation, InvitationStatus, OrgRole, TenantMember
from isoqms.models.subscription import Subscription, SubscriptionStatus
from isoqms.models.tenant import Tenant, TenantStatus
from isoqms.models.user import User
from isoqms.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def slugify(name: str) -> str:
    """Convert a tenant name to a URL-safe ASCII slug."""
    slug = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    slug = slug.lower().strip()
    slug = re.sub(r'[^a-z0-9\s_-]', '', slug)
    slug = re.sub(r'[\s_]+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')[:100] or "tenant"


def _base36(number: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def unique_slug(db: Session, name: str) -> str:
    """Slug for name; on collision a base-36 millisecond timestamp is appended."""
    slug = slugify(name)
    if db.query(Tenant).filter(Tenant.slug == slug).first() is None:
        return slug
    return f"{slug}-{_base36(int(time.time() * 1000))}"


def create_tenant(db: Session, user: User, name: str, cnpj: Optional[str] = None) -> Tenant:
    """
    Create a tenant owned by user.

    In one transaction: the tenant (trial), the creator's tenant_admin
    membership and a trialing subscription on the professional plan.
    Nothing is left behind if any step fails.
    """
    try:
        tenant = Tenant(
            name=name,
            slug=unique_slug(db, name),
            cnpj=cnpj,
            status=TenantStatus.TRIAL.value,
            trial_ends_at=datetime.utcnow() + timedelta(days=settings.TRIAL_DAYS),
            settings={},
        )
        db.add(tenant)
        db.flush()

        db.add(TenantMember(
            tenant_id=tenant.id,
            user_id=user.id,
            role=OrgRole.TENANT_ADMIN,
        ))

        plan = get_or_create_plan(db, "professional")
        db.add(Subscription(
            tenant_id=tenant.id,
            plan_id=plan.id,
            status=SubscriptionStatus.TRIALING.value,
            current_period_end=tenant.trial_ends_at,
        ))

        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Tenant creation failed for user {user.id}")
        raise

    db.refresh(tenant)
    logger.info(f"Tenant created: {tenant.slug} ({tenant.id}) by {user.id}")
    return tenant


def _admin_count(db: TenantScopedSession) -> int:
    return db.count(TenantMember, TenantMember.role == OrgRole.TENANT_ADMIN)


def change_member_role(ctx: RequestContext, member_id: str, role: OrgRole) -> TenantMember:
    member = ctx.db.get_or_404(TenantMember, member_id, "Member")
    role = OrgRole(role)

    if member.role == OrgRole.TENANT_ADMIN and role != OrgRole.TENANT_ADMIN:
        if _admin_count(ctx.db) <= 1:
            raise ForbiddenError("Cannot demote the last tenant admin")

    member.role = role
    ctx.db.commit()
    ctx.db.refresh(member)
    logger.info(f"Member {member.id} role changed to {role.value} by {ctx.user_id}")
    return member


def remove_member(ctx: RequestContext, member_id: str) -> None:
    member = ctx.db.get_or_404(TenantMember, member_id, "Member")

    if member.user_id == ctx.user_id:
        raise ForbiddenError("You cannot remove yourself")

    if member.role == OrgRole.TENANT_ADMIN and _admin_count(ctx.db) <= 1:
        raise ForbiddenError("Cannot remove the last tenant admin")

    ctx.db.delete(member)
    ctx.db.commit()
    logger.info(f"Member {member_id} removed by {ctx.user_id}")


def create_invitation(ctx: RequestContext, email: str, role: OrgRole) -> Invitation:
    """Invite email into the context's tenant. Checks the users quota first."""
    enforce_plan_limit(ctx.db.session, ctx.tenant_id, "users")

    email = email.lower()
    existing = ctx.db.query(TenantMember).join(User, TenantMember.user_id == User.id).filter(
        User.email == email
    ).first()
    if existing:
        raise ConflictError("User is already a member of this organization")

    invitation = Invitation(
        email=email,
        role=OrgRole(role),
        invited_by_id=ctx.user_id,
        status=InvitationStatus.PENDING.value,
        expires_at=datetime.utcnow() + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
    )
    ctx.db.add(invitation)
    ctx.db.commit()
    ctx.db.refresh(invitation)

    logger.info(f"Invitation {invitation.id} created for {email} by {ctx.user_id}")
    return invitation


def revoke_invitation(ctx: RequestContext, invitation_id: str) -> Invitation:
    invitation = ctx.db.get_or_404(Invitation, invitation_id, "Invitation")
    if invitation.status != InvitationStatus.PENDING.value:
        raise ForbiddenError("Only pending invitations can be revoked")

    invitation.status = InvitationStatus.REVOKED.value
    ctx.db.commit()
    return invitation


def get_invitation_by_token(db: Session, token: str) -> Invitation:
    invitation = db.query(Invitation).filter(Invitation.token == token).first()
    if invitation is None:
        raise NotFoundError("Invitation")
    return invitation


def accept_invitation(db: Session, user: User, token: str) -> Dict[str, Any]:
    """
    Accept an invitation on behalf of user.

    The invitation must be pending, unexpired and addressed to user's
    email. The membership and the invitation status change are committed
    together.
    """
    invitation = get_invitation_by_token(db, token)

    if invitation.status != InvitationStatus.PENDING.value:
        raise ForbiddenError("This invitation has already been used or revoked")

    if invitation.is_expired:
        invitation.status = InvitationStatus.EXPIRED.value
        db.commit()
        raise ForbiddenError("This invitation has expired")

    if user.email.lower() != invitation.email.lower():
        raise ForbiddenError("This invitation was sent to a different email")

    tenant = invitation.tenant
    existing = db.query(TenantMember).filter(
        TenantMember.tenant_id == invitation.tenant_id,
        TenantMember.user_id == user.id
    ).first()

    try:
        if existing is None:
            db.add(TenantMember(
                tenant_id=invitation.tenant_id,
                user_id=user.id,
                role=invitation.role,
            ))
        invitation.status = InvitationStatus.ACCEPTED.value
        invitation.accepted_at = datetime.utcnow()
        db.commit()
    except Exception:
        db.rollback()
        raise

    if existing is not None:
        return {
            "message": "You are already a member of this organization",
            "tenant_slug": tenant.slug,
            "role": OrgRole(existing.role).value,
        }

    logger.info(f"Invitation {invitation.id} accepted by {user.id}")
    return {
        "message": "Invitation accepted",
        "tenant_slug": tenant.slug,
        "role": OrgRole(invitation.role).value,
    }

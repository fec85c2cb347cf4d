"""
API Dependencies

Reusable FastAPI dependencies for authentication and tenant access.

Tenant routes depend on get_request_context, which resolves the caller,
the tenant from the {tenant_slug} path parameter, and the caller's
membership. Handlers then only touch data through ctx.db.
"""
from typing import Optional
from fastapi import Depends, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from isoqms.config import get_settings
from isoqms.database import get_db
from isoqms.models.user import User
from isoqms.models.tenant import Tenant
from isoqms.models.membership import TenantMember, OrgRole
from isoqms.core.security import decode_access_token
from isoqms.core.exceptions import AuthenticationError, ForbiddenError, NotFoundError, ValidationError
from isoqms.core.tenancy import RequestContext, TenantScopedSession
from isoqms.utils.logging import get_logger, log_security_event, tenant_slug_var

logger = get_logger(__name__)
settings = get_settings()

# auto_error=False so a missing header becomes our 401, not a bare 403
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user.

    1. Validates the JWT token
    2. Loads the user from the database
    3. Checks the account is active
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"Token for unknown user: {user_id}")
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    return user


def get_request_context(
    tenant_slug: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> RequestContext:
    """
    Resolve the tenant-scoped context for a /tenants/{tenant_slug}/... route.

    Raises:
        NotFoundError: unknown tenant slug
        ForbiddenError: tenant suspended/cancelled, or caller not a member.
            The global super-admin flag does not bypass membership.
    """
    tenant_slug_var.set(tenant_slug)

    tenant = db.query(Tenant).filter(Tenant.slug == tenant_slug).first()
    if not tenant:
        raise NotFoundError("Tenant")

    if not tenant.is_accessible:
        logger.warning(f"Access to {tenant.status} tenant attempted: {tenant_slug}")
        raise ForbiddenError(f"Organization is {tenant.status}")

    member = db.query(TenantMember).filter(
        TenantMember.tenant_id == tenant.id,
        TenantMember.user_id == current_user.id
    ).first()

    if not member:
        log_security_event(
            "membership_denied",
            tenant_id=tenant.id,
            user_id=current_user.id,
            details={"tenant_slug": tenant_slug, "is_super_admin": current_user.is_super_admin}
        )
        raise ForbiddenError("You are not a member of this organization")

    request.state.tenant_id = tenant.id
    request.state.user_id = current_user.id

    return RequestContext(
        tenant_id=tenant.id,
        user_id=current_user.id,
        role=OrgRole(member.role),
        db=TenantScopedSession(db, tenant.id),
        tenant_slug=tenant.slug,
    )


def require_super_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Platform operator routes (/admin). No tenant membership needed."""
    if not current_user.is_super_admin:
        log_security_event("admin_access_denied", user_id=current_user.id)
        raise ForbiddenError("Super admin privileges required")
    return current_user


class Pagination:
    """page / pageSize query parameters shared by every list endpoint."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=settings.MAX_PAGE_SIZE,
            alias="pageSize"
        ),
    ):
        self.page = page
        self.page_size = page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def ensure_member_ref(ctx: RequestContext, user_id: Optional[str], field: str = "responsible_id") -> None:
    """Reject a user reference (responsible, reviewer, ...) that is not a tenant member."""
    if user_id is None:
        return
    if ctx.db.query(TenantMember, TenantMember.user_id == user_id).first() is None:
        raise ValidationError(
            "Referenced user is not a member of this organization",
            errors={field: ["not a member of this organization"]}
        )

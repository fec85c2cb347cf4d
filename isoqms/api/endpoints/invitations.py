"""
Invitation Endpoints

Tenant side: list, create and revoke invitations.
Invitee side: look an invitation up by token and accept it.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from isoqms.database import get_db
from isoqms.models.user import User
from isoqms.models.membership import Invitation, InvitationStatus
from isoqms.schemas.membership import (
    InvitationCreate,
    InvitationResponse,
    InvitationInfo,
    InvitationAccepted,
)
from isoqms.api.deps import get_current_user, get_request_context, Pagination
from isoqms.api.responses import DataResponse, PageResponse, paginate
from isoqms.core.permissions import require_permission
from isoqms.core.tenancy import RequestContext
from isoqms.services import tenants as tenant_service
from isoqms.services.activity import log_activity, get_client_ip

router = APIRouter(tags=["invitations"])


@router.get("/tenants/{tenant_slug}/invitations", response_model=PageResponse[InvitationResponse])
def list_invitations(
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "invitation", "read")
    query = ctx.db.query(Invitation).order_by(Invitation.created_at.desc())
    return paginate(query, pagination)


@router.post(
    "/tenants/{tenant_slug}/invitations",
    response_model=DataResponse[InvitationResponse],
    status_code=status.HTTP_201_CREATED
)
def create_invitation(
    invitation_data: InvitationCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "invitation", "create")
    invitation = tenant_service.create_invitation(ctx, invitation_data.email, invitation_data.role)

    log_activity(
        ctx.db, ctx, "create", "invitation", invitation.id,
        {"email": invitation.email, "role": invitation.role.value}, get_client_ip(request)
    )
    ctx.db.commit()
    return {"data": invitation}


@router.delete("/tenants/{tenant_slug}/invitations/{invitation_id}", response_model=DataResponse[InvitationResponse])
def revoke_invitation(
    invitation_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "invitation", "delete")
    invitation = tenant_service.revoke_invitation(ctx, invitation_id)

    log_activity(
        ctx.db, ctx, "status_change", "invitation", invitation.id,
        {"status": InvitationStatus.REVOKED.value}, get_client_ip(request)
    )
    ctx.db.commit()
    return {"data": invitation}


@router.get("/invitations/{token}", response_model=DataResponse[InvitationInfo])
def get_invitation(token: str, db: Session = Depends(get_db)):
    """Public lookup used by the accept page; no authentication."""
    invitation = tenant_service.get_invitation_by_token(db, token)
    expired = invitation.status != InvitationStatus.PENDING.value or invitation.is_expired

    return {
        "data": InvitationInfo(
            valid=not expired,
            expired=expired,
            tenant_name=invitation.tenant.name,
            tenant_slug=invitation.tenant.slug,
            email=invitation.email,
            role=invitation.role,
            status=invitation.status,
        )
    }


@router.post("/invitations/{token}/accept", response_model=DataResponse[InvitationAccepted])
def accept_invitation(
    token: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"data": tenant_service.accept_invitation(db, current_user, token)}

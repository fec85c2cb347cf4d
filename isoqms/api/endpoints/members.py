"""
Member Endpoints

List members, change a member's role and remove members.
Guards (last admin, self-removal) live in services.tenants.
"""
from fastapi import APIRouter, Depends, Request

from isoqms.models.membership import TenantMember
from isoqms.schemas.membership import MemberResponse, MemberRoleUpdate
from isoqms.api.deps import get_request_context, Pagination
from isoqms.api.responses import DataResponse, PageResponse, Deleted, paginate, deleted
from isoqms.core.permissions import require_permission
from isoqms.core.tenancy import RequestContext
from isoqms.services import tenants as tenant_service
from isoqms.services.activity import log_activity, get_client_ip

router = APIRouter(prefix="/tenants/{tenant_slug}/members", tags=["members"])


@router.get("", response_model=PageResponse[MemberResponse])
def list_members(
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "member", "read")
    query = ctx.db.query(TenantMember).order_by(TenantMember.joined_at)
    return paginate(query, pagination)


@router.patch("/{member_id}", response_model=DataResponse[MemberResponse])
def update_member_role(
    member_id: str,
    role_data: MemberRoleUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "member", "update")
    member = tenant_service.change_member_role(ctx, member_id, role_data.role)

    log_activity(
        ctx.db, ctx, "update", "member", member.id,
        {"role": member.role.value}, get_client_ip(request)
    )
    ctx.db.commit()
    return {"data": member}


@router.delete("/{member_id}", response_model=DataResponse[Deleted])
def remove_member(
    member_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "member", "delete")
    tenant_service.remove_member(ctx, member_id)

    log_activity(ctx.db, ctx, "delete", "member", member_id, None, get_client_ip(request))
    ctx.db.commit()
    return deleted()

"""
Consulting Client Endpoints

The consultancy's customers. Creating one counts against the plan's
client quota; deleting one leaves its projects in place, unlinked.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional

from isoqms.models.client import ConsultingClient, ClientStatus
from isoqms.schemas.client import ClientCreate, ClientUpdate, ClientResponse, ClientDetail
from isoqms.api.deps import get_request_context, Pagination
from isoqms.api.responses import DataResponse, PageResponse, Deleted, paginate, deleted
from isoqms.core.permissions import require_permission
from isoqms.core.plan_limits import enforce_plan_limit
from isoqms.core.tenancy import RequestContext
from isoqms.services.activity import log_activity, get_client_ip, change_action, change_metadata
from isoqms.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants/{tenant_slug}/clients", tags=["clients"])


@router.get("", response_model=PageResponse[ClientResponse])
def list_clients(
    status: Optional[ClientStatus] = None,
    search: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "client", "read")

    query = ctx.db.query(ConsultingClient)
    if status:
        query = query.filter(ConsultingClient.status == status.value)
    if search:
        query = query.filter(ConsultingClient.name.ilike(f"%{search}%"))

    return paginate(query.order_by(ConsultingClient.name), pagination)


@router.get("/{client_id}", response_model=DataResponse[ClientDetail])
def get_client(
    client_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    """A client with the projects run for it, newest first."""
    require_permission(ctx, "client", "read")
    return {"data": ctx.db.get_or_404(ConsultingClient, client_id, "Client")}


@router.post("", response_model=DataResponse[ClientResponse], status_code=status.HTTP_201_CREATED)
def create_client(
    client_data: ClientCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "client", "create")
    enforce_plan_limit(ctx.db.session, ctx.tenant_id, "clients")

    client = ctx.db.add(ConsultingClient(
        status=ClientStatus.ACTIVE.value,
        **client_data.model_dump()
    ))
    ctx.db.flush()
    log_activity(ctx.db, ctx, "create", "client", client.id, {"name": client.name}, get_client_ip(request))
    ctx.db.commit()
    ctx.db.refresh(client)

    logger.info(f"Client created: {client.id} by {ctx.user_id}")
    return {"data": client}


@router.patch("/{client_id}", response_model=DataResponse[ClientResponse])
def update_client(
    client_id: str,
    client_data: ClientUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "client", "update")
    client = ctx.db.get_or_404(ConsultingClient, client_id, "Client")

    update_data = client_data.model_dump(exclude_unset=True)
    old_status = client.status
    for field, value in update_data.items():
        setattr(client, field, value)

    log_activity(
        ctx.db, ctx, change_action(old_status, update_data), "client", client.id,
        change_metadata(old_status, update_data), get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(client)
    return {"data": client}


@router.delete("/{client_id}", response_model=DataResponse[Deleted])
def delete_client(
    client_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "client", "delete")
    client = ctx.db.get_or_404(ConsultingClient, client_id, "Client")

    ctx.db.delete(client)
    log_activity(ctx.db, ctx, "delete", "client", client_id, {"name": client.name}, get_client_ip(request))
    ctx.db.commit()

    logger.info(f"Client deleted: {client_id} by {ctx.user_id}")
    return deleted()

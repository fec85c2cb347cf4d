"""
Supplier Endpoints

Supplier register. Codes are SUP-NNN, numbered per tenant.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional

from isoqms.models.project import Project
from isoqms.models.supplier import Supplier, SupplierStatus, SupplierType
from isoqms.schemas.supplier import SupplierCreate, SupplierUpdate, SupplierResponse
from isoqms.api.deps import get_request_context, ensure_member_ref, Pagination
from isoqms.api.responses import DataResponse, PageResponse, Deleted, paginate, deleted
from isoqms.core.permissions import require_permission
from isoqms.core.scoring import RiskLevel
from isoqms.core.tenancy import RequestContext
from isoqms.services.activity import log_activity, get_client_ip, change_action, change_metadata
from isoqms.utils.codes import next_code, SUPPLIER
from isoqms.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants/{tenant_slug}/suppliers", tags=["suppliers"])


@router.get("", response_model=PageResponse[SupplierResponse])
def list_suppliers(
    project_id: Optional[str] = Query(None, alias="projectId"),
    type: Optional[SupplierType] = None,
    risk_level: Optional[RiskLevel] = Query(None, alias="riskLevel"),
    status: Optional[SupplierStatus] = None,
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "supplier", "read")

    query = ctx.db.query(Supplier)
    if project_id:
        query = query.filter(Supplier.project_id == project_id)
    if type:
        query = query.filter(Supplier.type == type.value)
    if risk_level:
        query = query.filter(Supplier.risk_level == risk_level.value)
    if status:
        query = query.filter(Supplier.status == status.value)

    return paginate(query.order_by(Supplier.created_at.desc()), pagination)


@router.get("/{supplier_id}", response_model=DataResponse[SupplierResponse])
def get_supplier(
    supplier_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "supplier", "read")
    return {"data": ctx.db.get_or_404(Supplier, supplier_id, "Supplier")}


@router.post("", response_model=DataResponse[SupplierResponse], status_code=status.HTTP_201_CREATED)
def create_supplier(
    supplier_data: SupplierCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "supplier", "create")
    ctx.db.get_or_404(Project, supplier_data.project_id, "Project")
    ensure_member_ref(ctx, supplier_data.responsible_id)

    supplier = ctx.db.add(Supplier(
        code=next_code(ctx.db, Supplier, SUPPLIER, with_year=False),
        status=SupplierStatus.ACTIVE.value,
        **supplier_data.model_dump()
    ))
    ctx.db.flush()
    log_activity(ctx.db, ctx, "create", "supplier", supplier.id, {"code": supplier.code}, get_client_ip(request))
    ctx.db.commit()
    ctx.db.refresh(supplier)

    logger.info(f"Supplier created: {supplier.code} ({supplier.id}) by {ctx.user_id}")
    return {"data": supplier}


@router.patch("/{supplier_id}", response_model=DataResponse[SupplierResponse])
def update_supplier(
    supplier_id: str,
    supplier_data: SupplierUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "supplier", "update")
    supplier = ctx.db.get_or_404(Supplier, supplier_id, "Supplier")

    update_data = supplier_data.model_dump(exclude_unset=True)
    if "responsible_id" in update_data:
        ensure_member_ref(ctx, update_data["responsible_id"])

    old_status = supplier.status
    for field, value in update_data.items():
        setattr(supplier, field, value)

    log_activity(
        ctx.db, ctx, change_action(old_status, update_data), "supplier", supplier.id,
        change_metadata(old_status, update_data), get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(supplier)
    return {"data": supplier}


@router.delete("/{supplier_id}", response_model=DataResponse[Deleted])
def delete_supplier(
    supplier_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "supplier", "delete")
    supplier = ctx.db.get_or_404(Supplier, supplier_id, "Supplier")

    ctx.db.delete(supplier)
    log_activity(ctx.db, ctx, "delete", "supplier", supplier_id, {"code": supplier.code}, get_client_ip(request))
    ctx.db.commit()
    return deleted()

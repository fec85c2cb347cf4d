"""
Audit Endpoints

Audits and their findings. Findings inherit the audit's tenant and are
created through POST /{audit_id}/findings.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional

from isoqms.models.project import Project
from isoqms.models.audit import Audit, AuditFinding, AuditStatus, AuditType
from isoqms.models.nonconformity import Nonconformity
from isoqms.schemas.audit import (
    AuditCreate,
    AuditUpdate,
    AuditResponse,
    AuditDetail,
    FindingCreate,
    FindingResponse,
)
from isoqms.api.deps import get_request_context, ensure_member_ref, Pagination
from isoqms.api.responses import DataResponse, PageResponse, Deleted, paginate, deleted
from isoqms.core.exceptions import ValidationError
from isoqms.core.permissions import require_permission
from isoqms.core.tenancy import RequestContext
from isoqms.services.activity import log_activity, get_client_ip, change_action, change_metadata
from isoqms.utils.codes import next_code, AUDIT
from isoqms.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants/{tenant_slug}/audits", tags=["audits"])


@router.get("", response_model=PageResponse[AuditResponse])
def list_audits(
    project_id: Optional[str] = Query(None, alias="projectId"),
    status: Optional[AuditStatus] = None,
    type: Optional[AuditType] = None,
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "audit", "read")

    query = ctx.db.query(Audit)
    if project_id:
        query = query.filter(Audit.project_id == project_id)
    if status:
        query = query.filter(Audit.status == status.value)
    if type:
        query = query.filter(Audit.type == type.value)

    return paginate(query.order_by(Audit.start_date.desc()), pagination)


@router.get("/{audit_id}", response_model=DataResponse[AuditDetail])
def get_audit(
    audit_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "audit", "read")
    return {"data": ctx.db.get_or_404(Audit, audit_id, "Audit")}


@router.post("", response_model=DataResponse[AuditResponse], status_code=status.HTTP_201_CREATED)
def create_audit(
    audit_data: AuditCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "audit", "create")
    ctx.db.get_or_404(Project, audit_data.project_id, "Project")
    ensure_member_ref(ctx, audit_data.lead_auditor_id, "lead_auditor_id")
    if audit_data.end_date and audit_data.end_date < audit_data.start_date:
        raise ValidationError("end_date must not be before start_date", {"end_date": ["before start_date"]})

    audit = ctx.db.add(Audit(
        code=next_code(ctx.db, Audit, AUDIT),
        status=AuditStatus.PLANNED.value,
        **audit_data.model_dump()
    ))
    ctx.db.flush()
    log_activity(ctx.db, ctx, "create", "audit", audit.id, {"code": audit.code}, get_client_ip(request))
    ctx.db.commit()
    ctx.db.refresh(audit)

    logger.info(f"Audit created: {audit.code} ({audit.id}) by {ctx.user_id}")
    return {"data": audit}


@router.patch("/{audit_id}", response_model=DataResponse[AuditResponse])
def update_audit(
    audit_id: str,
    audit_data: AuditUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "audit", "update")
    audit = ctx.db.get_or_404(Audit, audit_id, "Audit")

    update_data = audit_data.model_dump(exclude_unset=True)
    if "lead_auditor_id" in update_data:
        ensure_member_ref(ctx, update_data["lead_auditor_id"], "lead_auditor_id")

    old_status = audit.status
    for field, value in update_data.items():
        setattr(audit, field, value)

    if audit.end_date and audit.start_date and audit.end_date < audit.start_date:
        raise ValidationError("end_date must not be before start_date", {"end_date": ["before start_date"]})

    log_activity(
        ctx.db, ctx, change_action(old_status, update_data), "audit", audit.id,
        change_metadata(old_status, update_data), get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(audit)
    return {"data": audit}


@router.delete("/{audit_id}", response_model=DataResponse[Deleted])
def delete_audit(
    audit_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "audit", "delete")
    audit = ctx.db.get_or_404(Audit, audit_id, "Audit")

    ctx.db.delete(audit)
    log_activity(ctx.db, ctx, "delete", "audit", audit_id, {"code": audit.code}, get_client_ip(request))
    ctx.db.commit()
    return deleted()


@router.get("/{audit_id}/findings", response_model=DataResponse[List[FindingResponse]])
def list_findings(
    audit_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "auditFinding", "read")
    ctx.db.get_or_404(Audit, audit_id, "Audit")

    findings = ctx.db.query(AuditFinding, AuditFinding.audit_id == audit_id).order_by(
        AuditFinding.created_at
    ).all()
    return {"data": findings}


@router.post(
    "/{audit_id}/findings",
    response_model=DataResponse[FindingResponse],
    status_code=status.HTTP_201_CREATED
)
def create_finding(
    audit_id: str,
    finding_data: FindingCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "auditFinding", "create")
    audit = ctx.db.get_or_404(Audit, audit_id, "Audit")
    if finding_data.nonconformity_id:
        ctx.db.get_or_404(Nonconformity, finding_data.nonconformity_id, "Nonconformity")

    finding = ctx.db.add(AuditFinding(audit_id=audit.id, **finding_data.model_dump()))
    ctx.db.flush()
    log_activity(
        ctx.db, ctx, "create", "auditFinding", finding.id,
        {"audit_id": audit.id, "classification": finding.classification}, get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(finding)
    return {"data": finding}

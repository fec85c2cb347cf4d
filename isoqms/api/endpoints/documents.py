"""
Document Endpoints

Controlled documents and their revision history.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional

from isoqms.models.project import Project
from isoqms.models.document import Document, DocumentVersion, DocumentStatus, DocumentType
from isoqms.schemas.document import (
    DocumentCreate,
    DocumentUpdate,
    DocumentResponse,
    DocumentVersionCreate,
    DocumentVersionResponse,
)
from isoqms.api.deps import get_request_context, ensure_member_ref, Pagination
from isoqms.api.responses import DataResponse, PageResponse, Deleted, paginate, deleted
from isoqms.core.permissions import require_permission
from isoqms.core.tenancy import RequestContext
from isoqms.services.activity import log_activity, get_client_ip, change_action, change_metadata
from isoqms.utils.codes import next_code, DOCUMENT
from isoqms.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants/{tenant_slug}/documents", tags=["documents"])


def next_minor_version(version: str) -> str:
    """'1.0' -> '1.1'; anything unparsable restarts at '1.0'."""
    try:
        major, minor = version.split(".", 1)
        return f"{int(major)}.{int(minor) + 1}"
    except ValueError:
        return "1.0"


@router.get("", response_model=PageResponse[DocumentResponse])
def list_documents(
    project_id: Optional[str] = Query(None, alias="projectId"),
    status: Optional[DocumentStatus] = None,
    type: Optional[DocumentType] = None,
    search: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "document", "read")

    query = ctx.db.query(Document)
    if project_id:
        query = query.filter(Document.project_id == project_id)
    if status:
        query = query.filter(Document.status == status.value)
    if type:
        query = query.filter(Document.type == type.value)
    if search:
        query = query.filter(Document.title.ilike(f"%{search}%"))

    return paginate(query.order_by(Document.created_at.desc()), pagination)


@router.get("/{document_id}", response_model=DataResponse[DocumentResponse])
def get_document(
    document_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "document", "read")
    return {"data": ctx.db.get_or_404(Document, document_id, "Document")}


@router.post("", response_model=DataResponse[DocumentResponse], status_code=status.HTTP_201_CREATED)
def create_document(
    document_data: DocumentCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "document", "create")
    ctx.db.get_or_404(Project, document_data.project_id, "Project")
    ensure_member_ref(ctx, document_data.reviewer_id, "reviewer_id")
    ensure_member_ref(ctx, document_data.approver_id, "approver_id")

    document = ctx.db.add(Document(
        code=next_code(ctx.db, Document, DOCUMENT),
        version="1.0",
        status=DocumentStatus.DRAFT.value,
        **document_data.model_dump()
    ))
    ctx.db.flush()
    log_activity(ctx.db, ctx, "create", "document", document.id, {"code": document.code}, get_client_ip(request))
    ctx.db.commit()
    ctx.db.refresh(document)

    logger.info(f"Document created: {document.code} ({document.id}) by {ctx.user_id}")
    return {"data": document}


@router.patch("/{document_id}", response_model=DataResponse[DocumentResponse])
def update_document(
    document_id: str,
    document_data: DocumentUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "document", "update")
    document = ctx.db.get_or_404(Document, document_id, "Document")

    update_data = document_data.model_dump(exclude_unset=True)
    for field in ("reviewer_id", "approver_id"):
        if field in update_data:
            ensure_member_ref(ctx, update_data[field], field)

    old_status = document.status
    for field, value in update_data.items():
        setattr(document, field, value)

    if document.status == DocumentStatus.APPROVED.value and old_status != DocumentStatus.APPROVED.value:
        document.approved_at = datetime.utcnow()
        document.approver_id = document.approver_id or ctx.user_id
    elif old_status == DocumentStatus.APPROVED.value and document.status != DocumentStatus.APPROVED.value:
        document.approved_at = None
        if "approver_id" not in update_data:
            document.approver_id = None

    log_activity(
        ctx.db, ctx, change_action(old_status, update_data), "document", document.id,
        change_metadata(old_status, update_data), get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(document)
    return {"data": document}


@router.delete("/{document_id}", response_model=DataResponse[Deleted])
def delete_document(
    document_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "document", "delete")
    document = ctx.db.get_or_404(Document, document_id, "Document")

    ctx.db.delete(document)
    log_activity(ctx.db, ctx, "delete", "document", document_id, {"code": document.code}, get_client_ip(request))
    ctx.db.commit()
    return deleted()


@router.get("/{document_id}/versions", response_model=DataResponse[List[DocumentVersionResponse]])
def list_versions(
    document_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "document", "read")
    ctx.db.get_or_404(Document, document_id, "Document")

    versions = ctx.db.query(DocumentVersion, DocumentVersion.document_id == document_id).order_by(
        DocumentVersion.created_at.desc()
    ).all()
    return {"data": versions}


@router.post(
    "/{document_id}/versions",
    response_model=DataResponse[DocumentVersionResponse],
    status_code=status.HTTP_201_CREATED
)
def create_version(
    document_id: str,
    version_data: DocumentVersionCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    """
    Archive the current revision and open the next one.

    The returned entry holds the text being superseded. The document itself
    moves to the new version in draft with its approval cleared.
    """
    require_permission(ctx, "document", "update")
    document = ctx.db.get_or_404(Document, document_id, "Document")

    snapshot = ctx.db.add(DocumentVersion(
        document_id=document.id,
        version=document.version,
        content=document.content,
        change_notes=version_data.change_notes,
        created_by_id=ctx.user_id,
    ))

    old_version = document.version
    document.version = version_data.new_version or next_minor_version(document.version)
    document.status = DocumentStatus.DRAFT.value
    document.approved_at = None
    document.approver_id = None
    if version_data.content is not None:
        document.content = version_data.content

    ctx.db.flush()
    log_activity(
        ctx.db, ctx, "update", "document", document.id,
        {"from_version": old_version, "to_version": document.version}, get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(snapshot)

    logger.info(f"Document {document.code} moved to v{document.version} by {ctx.user_id}")
    return {"data": snapshot}

"""
Risk Endpoints

Risk register with probability x impact scoring. risk_level is always
derived from probability and impact (core.scoring). A change to either
leaves a RiskHistory snapshot and stamps last_review_date.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional

from isoqms.models.project import Project
from isoqms.models.risk import Risk, RiskHistory, RiskCategory, RiskStatus
from isoqms.schemas.risk import (
    RiskCreate,
    RiskUpdate,
    RiskReview,
    RiskResponse,
    RiskDetail,
    RiskHistoryResponse,
)
from isoqms.api.deps import get_request_context, ensure_member_ref, Pagination
from isoqms.api.responses import DataResponse, PageResponse, Deleted, paginate, deleted
from isoqms.core.permissions import require_permission
from isoqms.core.scoring import RiskLevel, get_risk_level
from isoqms.core.tenancy import RequestContext
from isoqms.services.activity import log_activity, get_client_ip, change_action, change_metadata
from isoqms.utils.codes import next_code, RISK
from isoqms.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants/{tenant_slug}/risks", tags=["risks"])


def _snapshot(risk: Risk, user_id: str, notes: Optional[str] = None) -> RiskHistory:
    now = datetime.utcnow()
    risk.last_review_date = now
    return RiskHistory(
        risk_id=risk.id,
        probability=risk.probability,
        impact=risk.impact,
        risk_level=risk.risk_level,
        residual_probability=risk.residual_probability,
        residual_impact=risk.residual_impact,
        status=risk.status,
        review_notes=notes,
        reviewed_by_id=user_id,
        reviewed_at=now,
    )


@router.get("", response_model=PageResponse[RiskResponse])
def list_risks(
    project_id: Optional[str] = Query(None, alias="projectId"),
    status: Optional[RiskStatus] = None,
    category: Optional[RiskCategory] = None,
    risk_level: Optional[RiskLevel] = Query(None, alias="riskLevel"),
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "risk", "read")

    query = ctx.db.query(Risk)
    if project_id:
        query = query.filter(Risk.project_id == project_id)
    if status:
        query = query.filter(Risk.status == status.value)
    if category:
        query = query.filter(Risk.category == category.value)
    if risk_level:
        query = query.filter(Risk.risk_level == risk_level.value)

    return paginate(query.order_by(Risk.created_at.desc()), pagination)


@router.get("/{risk_id}", response_model=DataResponse[RiskDetail])
def get_risk(
    risk_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "risk", "read")
    return {"data": ctx.db.get_or_404(Risk, risk_id, "Risk")}


@router.post("", response_model=DataResponse[RiskResponse], status_code=status.HTTP_201_CREATED)
def create_risk(
    risk_data: RiskCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "risk", "create")
    ctx.db.get_or_404(Project, risk_data.project_id, "Project")
    ensure_member_ref(ctx, risk_data.responsible_id)

    risk = ctx.db.add(Risk(
        code=next_code(ctx.db, Risk, RISK),
        risk_level=get_risk_level(risk_data.probability, risk_data.impact),
        status=RiskStatus.IDENTIFIED.value,
        **risk_data.model_dump()
    ))
    ctx.db.flush()
    log_activity(
        ctx.db, ctx, "create", "risk", risk.id,
        {"code": risk.code, "risk_level": risk.risk_level}, get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(risk)

    logger.info(f"Risk created: {risk.code} level={risk.risk_level} by {ctx.user_id}")
    return {"data": risk}


@router.patch("/{risk_id}", response_model=DataResponse[RiskResponse])
def update_risk(
    risk_id: str,
    risk_data: RiskUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "risk", "update")
    risk = ctx.db.get_or_404(Risk, risk_id, "Risk")

    update_data = risk_data.model_dump(exclude_unset=True)
    if "responsible_id" in update_data:
        ensure_member_ref(ctx, update_data["responsible_id"])

    old_status = risk.status
    old_score = (risk.probability, risk.impact)

    for field, value in update_data.items():
        # Clearing a score is not allowed; None means "leave as is"
        if field in ("probability", "impact") and value is None:
            continue
        setattr(risk, field, value)

    risk.risk_level = get_risk_level(risk.probability, risk.impact)
    if (risk.probability, risk.impact) != old_score:
        ctx.db.add(_snapshot(risk, ctx.user_id, update_data.get("review_notes")))

    log_activity(
        ctx.db, ctx, change_action(old_status, update_data), "risk", risk.id,
        change_metadata(old_status, update_data), get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(risk)
    return {"data": risk}


@router.delete("/{risk_id}", response_model=DataResponse[Deleted])
def delete_risk(
    risk_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "risk", "delete")
    risk = ctx.db.get_or_404(Risk, risk_id, "Risk")

    ctx.db.delete(risk)
    log_activity(ctx.db, ctx, "delete", "risk", risk_id, {"code": risk.code}, get_client_ip(request))
    ctx.db.commit()
    return deleted()


@router.get("/{risk_id}/history", response_model=DataResponse[List[RiskHistoryResponse]])
def list_risk_history(
    risk_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "risk", "read")
    ctx.db.get_or_404(Risk, risk_id, "Risk")

    history = ctx.db.query(RiskHistory, RiskHistory.risk_id == risk_id).order_by(
        RiskHistory.reviewed_at.desc()
    ).all()
    return {"data": history}


@router.post(
    "/{risk_id}/history",
    response_model=DataResponse[RiskHistoryResponse],
    status_code=status.HTTP_201_CREATED
)
def review_risk(
    risk_id: str,
    review: RiskReview,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    """
    Record a periodic review.

    The risk is re-scored with the reviewed values and a history entry is
    written in the same commit, whether or not the score changed.
    """
    require_permission(ctx, "risk", "update")
    risk = ctx.db.get_or_404(Risk, risk_id, "Risk")

    old_status = risk.status
    review_data = review.model_dump(exclude_unset=True)
    for field, value in review_data.items():
        setattr(risk, field, value)
    risk.risk_level = get_risk_level(risk.probability, risk.impact)

    entry = ctx.db.add(_snapshot(risk, ctx.user_id, review.review_notes))
    ctx.db.flush()
    log_activity(
        ctx.db, ctx, change_action(old_status, review_data), "risk", risk.id,
        {"review": entry.id, "risk_level": risk.risk_level}, get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(entry)

    logger.info(f"Risk reviewed: {risk.code} level={risk.risk_level} by {ctx.user_id}")
    return {"data": entry}

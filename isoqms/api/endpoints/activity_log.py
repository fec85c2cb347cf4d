"""
Activity Log Endpoints

Read-only view over the tenant's audit trail.
"""
from datetime import date, datetime, time
from fastapi import APIRouter, Depends, Query
from typing import Optional

from isoqms.models.activity_log import ActivityLog, ActivityAction
from isoqms.schemas.activity import ActivityLogResponse
from isoqms.api.deps import get_request_context, Pagination
from isoqms.api.responses import PageResponse, paginate
from isoqms.core.exceptions import ValidationError
from isoqms.core.permissions import require_permission
from isoqms.core.tenancy import RequestContext

router = APIRouter(prefix="/tenants/{tenant_slug}/activity-log", tags=["activity-log"])


@router.get("", response_model=PageResponse[ActivityLogResponse])
def list_activity(
    user_id: Optional[str] = Query(None, alias="userId"),
    action: Optional[ActivityAction] = None,
    entity_type: Optional[str] = Query(None, alias="entityType", max_length=50),
    entity_id: Optional[str] = Query(None, alias="entityId"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    """
    List activity, newest first.

    dateTo is inclusive: entries from any time on that day are returned.
    """
    require_permission(ctx, "activityLog", "read")
    if date_from and date_to and date_to < date_from:
        raise ValidationError("dateTo must not be before dateFrom", {"dateTo": ["before dateFrom"]})

    query = ctx.db.query(ActivityLog)
    if user_id:
        query = query.filter(ActivityLog.user_id == user_id)
    if action:
        query = query.filter(ActivityLog.action == action.value)
    if entity_type:
        query = query.filter(ActivityLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(ActivityLog.entity_id == entity_id)
    if date_from:
        query = query.filter(ActivityLog.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        query = query.filter(ActivityLog.created_at <= datetime.combine(date_to, time.max))

    return paginate(query.order_by(ActivityLog.created_at.desc()), pagination)

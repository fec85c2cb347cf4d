"""
Activity Log Service

log_activity() adds a row to the caller's unit of work; it is written by
the handler's own commit, so a failed change leaves no log entry.
"""
from typing import Any, Dict, Optional
from fastapi import Request

from isoqms.core.tenancy import RequestContext, TenantScopedSession
from isoqms.models.activity_log import ActivityAction, ActivityLog


def get_client_ip(request: Optional[Request]) -> Optional[str]:
    """First hop of X-Forwarded-For, else X-Real-IP, else None."""
    if request is None:
        return None

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    return real_ip.strip() if real_ip else None


def log_activity(
    db: TenantScopedSession,
    ctx: RequestContext,
    action: str,
    entity_type: str,
    entity_id: Optional[str],
    metadata: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
) -> ActivityLog:
    entry = ActivityLog(
        user_id=ctx.user_id,
        action=ActivityAction(action).value,
        entity_type=entity_type,
        entity_id=entity_id,
        details=metadata,
        ip_address=ip,
    )
    db.add(entry)
    return entry


def change_action(old_status: Optional[str], changes: Dict[str, Any]) -> str:
    """status_change when an update moves the status, update otherwise."""
    new_status = changes.get("status")
    if new_status is not None and new_status != old_status:
        return ActivityAction.STATUS_CHANGE.value
    return ActivityAction.UPDATE.value


def change_metadata(old_status: Optional[str], changes: Dict[str, Any]) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {"fields": sorted(changes)}
    if change_action(old_status, changes) == ActivityAction.STATUS_CHANGE.value:
        metadata["from"] = old_status
        metadata["to"] = changes["status"]
    return metadata

"""
Permission System (RBAC)

A static role -> resource -> allowed actions table. There is no role
inheritance and nothing is evaluated at runtime: if the (role, resource,
action) triple is not in PERMISSIONS, the action is denied.

Routes call require_permission(ctx, resource, action) right after
resolving the request context.
"""
from typing import Dict, FrozenSet, Union
from isoqms.core.exceptions import ForbiddenError
from isoqms.models.membership import OrgRole
from isoqms.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

CREATE = "create"
READ = "read"
UPDATE = "update"
DELETE = "delete"

ACTIONS = (CREATE, READ, UPDATE, DELETE)

RESOURCES = (
    "project", "risk", "actionPlan", "nonconformity", "audit", "auditFinding",
    "document", "indicator", "soaEntry", "requirement", "control", "process",
    "client", "member", "invitation", "settings", "billing",
    "managementReview", "context", "interestedParty", "supplier", "policy",
    "activityLog",
)

_CRUD = frozenset(ACTIONS)
_CRU = frozenset((CREATE, READ, UPDATE))
_CR = frozenset((CREATE, READ))
_RU = frozenset((READ, UPDATE))
_R = frozenset((READ,))


PERMISSIONS: Dict[OrgRole, Dict[str, FrozenSet[str]]] = {
    OrgRole.TENANT_ADMIN: {
        "project": _CRUD,
        "risk": _CRUD,
        "actionPlan": _CRUD,
        "nonconformity": _CRUD,
        "audit": _CRUD,
        "auditFinding": _CRUD,
        "document": _CRUD,
        "indicator": _CRUD,
        "process": _CRUD,
        "soaEntry": _CRUD,
        "requirement": _CRUD,
        "control": _CRUD,
        "client": _CRUD,
        "member": _CRUD,
        "invitation": _CRUD,
        "settings": _RU,
        "billing": _RU,
        "managementReview": _CRUD,
        "context": _CRUD,
        "interestedParty": _CRUD,
        "supplier": _CRUD,
        "policy": _CRUD,
        "activityLog": _R,
    },
    OrgRole.PROJECT_MANAGER: {
        "project": _CRU,
        "risk": _CRU,
        "actionPlan": _CRU,
        "nonconformity": _CRU,
        "audit": _CRU,
        "auditFinding": _CRU,
        "document": _CRU,
        "indicator": _CRU,
        "process": _CRU,
        "soaEntry": _CRU,
        "requirement": _CRUD,
        "control": _CRUD,
        "client": _R,
        "member": _R,
        "invitation": _CR,
        "settings": _R,
        "managementReview": _CRU,
        "context": _CRUD,
        "interestedParty": _CRUD,
        "supplier": _CRU,
        "policy": _CRU,
        "activityLog": _R,
    },
    OrgRole.SENIOR_CONSULTANT: {
        "project": _R,
        "risk": _CRU,
        "actionPlan": _CRU,
        "nonconformity": _CRU,
        "audit": _R,
        "auditFinding": _R,
        "document": _CRU,
        "indicator": _CRU,
        "process": _CRU,
        "soaEntry": _CRU,
        "requirement": _CRU,
        "control": _CRU,
        "client": _R,
        "member": _R,
        "managementReview": _R,
        "context": _CRU,
        "interestedParty": _CRU,
        "supplier": _CRU,
        "policy": _CRU,
    },
    OrgRole.JUNIOR_CONSULTANT: {
        "project": _R,
        "risk": _RU,
        "actionPlan": _RU,
        "nonconformity": _RU,
        "audit": _R,
        "auditFinding": _R,
        "document": _RU,
        "indicator": _R,
        "process": _R,
        "soaEntry": _R,
        "requirement": _RU,
        "control": _RU,
        "client": _R,
        "member": _R,
        "managementReview": _R,
        "context": _RU,
        "interestedParty": _RU,
        "supplier": _R,
        "policy": _RU,
    },
    OrgRole.INTERNAL_AUDITOR: {
        "project": _R,
        "risk": _R,
        "actionPlan": _R,
        "nonconformity": _CR,
        "audit": _CRU,
        "auditFinding": _CRU,
        "document": _R,
        "indicator": _R,
        "process": _R,
        "soaEntry": _R,
        "requirement": _R,
        "control": _R,
        "client": _R,
        "member": _R,
        "managementReview": _R,
        "context": _R,
        "interestedParty": _R,
        "supplier": _R,
        "policy": _R,
    },
    OrgRole.EXTERNAL_AUDITOR: {
        "project": _R,
        "risk": _R,
        "actionPlan": _R,
        "nonconformity": _R,
        "audit": _R,
        "auditFinding": _R,
        "document": _R,
        "indicator": _R,
        "process": _R,
        "soaEntry": _R,
        "requirement": _R,
        "control": _R,
        "managementReview": _R,
        "context": _R,
        "interestedParty": _R,
        "supplier": _R,
        "policy": _R,
    },
    OrgRole.CLIENT_VIEWER: {
        "project": _R,
        "risk": _R,
        "actionPlan": _R,
        "nonconformity": _R,
        "audit": _R,
        "document": _R,
        "indicator": _R,
        "process": _R,
        "managementReview": _R,
        "context": _R,
        "interestedParty": _R,
        "policy": _R,
    },
}


def _as_role(role: Union[OrgRole, str]) -> OrgRole:
    # Enum members hash by name, so plain strings must be converted
    # before they can be used as PERMISSIONS keys.
    return OrgRole(role)


def has_permission(role: Union[OrgRole, str], resource: str, action: str) -> bool:
    try:
        role = _as_role(role)
    except ValueError:
        return False
    return action in PERMISSIONS.get(role, {}).get(resource, frozenset())


def require_permission(ctx, resource: str, action: str) -> None:
    """
    Raise ForbiddenError unless the context's role may perform action on resource.

    ctx is a RequestContext (core.tenancy); only ctx.role is consulted,
    plus tenant/user ids for the security log.
    """
    if has_permission(ctx.role, resource, action):
        return

    log_security_event(
        "permission_denied",
        tenant_id=ctx.tenant_id,
        user_id=ctx.user_id,
        details={"resource": resource, "action": action, "role": str(_as_role(ctx.role).value)},
        severity="WARNING"
    )
    raise ForbiddenError(f"Permission denied: cannot {action} {resource}")


def can_create(role: Union[OrgRole, str], resource: str) -> bool:
    return has_permission(role, resource, CREATE)


def can_read(role: Union[OrgRole, str], resource: str) -> bool:
    return has_permission(role, resource, READ)


def can_update(role: Union[OrgRole, str], resource: str) -> bool:
    return has_permission(role, resource, UPDATE)


def can_delete(role: Union[OrgRole, str], resource: str) -> bool:
    return has_permission(role, resource, DELETE)


def is_admin(role: Union[OrgRole, str]) -> bool:
    return _as_role(role) == OrgRole.TENANT_ADMIN


def is_manager(role: Union[OrgRole, str]) -> bool:
    return _as_role(role) in (OrgRole.TENANT_ADMIN, OrgRole.PROJECT_MANAGER)


def is_consultant(role: Union[OrgRole, str]) -> bool:
    return _as_role(role) in (
        OrgRole.SENIOR_CONSULTANT,
        OrgRole.JUNIOR_CONSULTANT,
        OrgRole.PROJECT_MANAGER,
    )


def is_auditor(role: Union[OrgRole, str]) -> bool:
    return _as_role(role) in (OrgRole.INTERNAL_AUDITOR, OrgRole.EXTERNAL_AUDITOR)


def is_viewer(role: Union[OrgRole, str]) -> bool:
    """Read-mostly roles: the client and external auditors."""
    return _as_role(role) in (OrgRole.CLIENT_VIEWER, OrgRole.EXTERNAL_AUDITOR)

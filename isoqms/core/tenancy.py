"""
Tenant-Scoped Data Access

TenantScopedSession wraps a SQLAlchemy session bound to one tenant:
- query() and count() always filter by tenant_id
- add() stamps tenant_id on new rows and refuses rows of other tenants
- delete() refuses rows of other tenants

Route handlers only ever see this wrapper (as ctx.db), so a handler cannot
read or write another tenant's data by forgetting a filter.
"""
from dataclasses import dataclass
from typing import Any, Optional, Type
from sqlalchemy.orm import Session

from isoqms.core.exceptions import NotFoundError, TenantIsolationError
from isoqms.models.membership import OrgRole
from isoqms.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


def _require_tenant_column(model: Type) -> None:
    if not hasattr(model, "tenant_id"):
        raise TypeError(f"{model.__name__} is not tenant-scoped; use the unscoped session for it")


class TenantScopedSession:
    """Session facade that can only see and write one tenant's rows."""

    def __init__(self, session: Session, tenant_id: str):
        self.session = session
        self.tenant_id = tenant_id

    def query(self, model: Type, *criteria):
        _require_tenant_column(model)
        query = self.session.query(model).filter(model.tenant_id == self.tenant_id)
        if criteria:
            query = query.filter(*criteria)
        return query

    def get(self, model: Type, entity_id: str) -> Optional[Any]:
        return self.query(model, model.id == entity_id).first()

    def get_or_404(self, model: Type, entity_id: str, entity: Optional[str] = None) -> Any:
        obj = self.get(model, entity_id)
        if obj is None:
            raise NotFoundError(entity or model.__name__)
        return obj

    def count(self, model: Type, *criteria) -> int:
        return self.query(model, *criteria).count()

    def _check_owner(self, obj: Any, operation: str) -> None:
        owner = getattr(obj, "tenant_id", None)
        if owner is not None and owner != self.tenant_id:
            log_security_event(
                "tenant_isolation_violation",
                tenant_id=self.tenant_id,
                details={
                    "operation": operation,
                    "entity": type(obj).__name__,
                    "row_tenant_id": owner,
                },
                severity="CRITICAL"
            )
            raise TenantIsolationError()

    def add(self, obj: Any) -> Any:
        _require_tenant_column(type(obj))
        self._check_owner(obj, "add")
        obj.tenant_id = self.tenant_id
        self.session.add(obj)
        return obj

    def add_all(self, objs) -> None:
        for obj in objs:
            self.add(obj)

    def delete(self, obj: Any) -> None:
        _require_tenant_column(type(obj))
        self._check_owner(obj, "delete")
        self.session.delete(obj)

    def flush(self) -> None:
        self.session.flush()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def refresh(self, obj: Any) -> None:
        self.session.refresh(obj)


@dataclass
class RequestContext:
    """Everything a tenant route needs about the caller."""

    tenant_id: str
    user_id: str
    role: OrgRole
    db: TenantScopedSession
    tenant_slug: str

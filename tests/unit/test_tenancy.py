"""
Unit tests for the tenant-scoped session.
"""
import pytest

from isoqms.core.exceptions import NotFoundError, TenantIsolationError
from isoqms.models.project import Project
from isoqms.models.tenant import Tenant
from isoqms.models.user import User


@pytest.fixture
def contexts(tenant, other_tenant, admin_user, context_for):
    return context_for(tenant, admin_user), context_for(other_tenant, admin_user)


class TestScopedReads:

    def test_query_only_returns_own_rows(self, contexts):
        acme, globex = contexts
        acme.db.add(Project(name="Acme QMS"))
        globex.db.add(Project(name="Globex QMS"))
        acme.db.commit()

        assert [p.name for p in acme.db.query(Project).all()] == ["Acme QMS"]
        assert [p.name for p in globex.db.query(Project).all()] == ["Globex QMS"]

    def test_get_of_foreign_row_is_none(self, contexts):
        acme, globex = contexts
        foreign = globex.db.add(Project(name="Globex QMS"))
        globex.db.commit()

        assert acme.db.get(Project, foreign.id) is None
        with pytest.raises(NotFoundError):
            acme.db.get_or_404(Project, foreign.id, "Project")

    def test_count_with_criteria(self, contexts):
        acme, _ = contexts
        acme.db.add_all([Project(name="One"), Project(name="Two", status="archived")])
        acme.db.commit()

        assert acme.db.count(Project) == 2
        assert acme.db.count(Project, Project.status == "archived") == 1

    def test_unscoped_models_are_rejected(self, contexts):
        acme, _ = contexts
        with pytest.raises(TypeError):
            acme.db.query(User)
        with pytest.raises(TypeError):
            acme.db.add(Tenant(name="Nope", slug="nope"))


class TestScopedWrites:

    def test_add_stamps_tenant_id(self, contexts, tenant):
        acme, _ = contexts
        project = acme.db.add(Project(name="Stamped"))
        acme.db.commit()

        assert project.tenant_id == tenant.id

    def test_add_of_foreign_row_raises(self, contexts, other_tenant, caplog):
        acme, _ = contexts
        with pytest.raises(TenantIsolationError):
            acme.db.add(Project(name="Smuggled", tenant_id=other_tenant.id))

        assert any(getattr(r, "event_type", None) == "tenant_isolation_violation" for r in caplog.records)

    def test_delete_of_foreign_row_raises(self, contexts):
        acme, globex = contexts
        foreign = globex.db.add(Project(name="Globex QMS"))
        globex.db.commit()

        with pytest.raises(TenantIsolationError):
            acme.db.delete(foreign)

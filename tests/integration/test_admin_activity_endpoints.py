"""
Integration tests for the activity log, the /admin routes and error envelopes.
"""
from datetime import datetime, timedelta

import pytest

from isoqms.models.membership import OrgRole


def url(tenant, path=""):
    return f"/api/v1/tenants/{tenant.slug}{path}"


class TestActivityLog:

    def test_mutations_are_recorded(self, client, tenant, admin_headers, admin_user, project):
        client.patch(url(tenant, f"/projects/{project['id']}"), json={"status": "in_progress"}, headers=admin_headers)
        client.patch(url(tenant, f"/projects/{project['id']}"), json={"progress": 10}, headers=admin_headers)

        body = client.get(url(tenant, "/activity-log?entityType=project"), headers=admin_headers).json()
        actions = [entry["action"] for entry in body["data"]]

        assert body["total"] == 3
        assert sorted(actions) == ["create", "status_change", "update"]
        assert all(entry["user_id"] == admin_user.id for entry in body["data"])

        change = next(e for e in body["data"] if e["action"] == "status_change")
        assert change["metadata"]["from"] == "planning"
        assert change["metadata"]["to"] == "in_progress"

    def test_client_ip_is_captured(self, client, tenant, admin_headers):
        headers = {**admin_headers, "X-Forwarded-For": "203.0.113.9, 10.0.0.1"}
        client.post(url(tenant, "/projects"), json={"name": "Behind proxy"}, headers=headers)

        entry = client.get(url(tenant, "/activity-log"), headers=admin_headers).json()["data"][0]
        assert entry["ip_address"] == "203.0.113.9"

    def test_filters(self, client, tenant, admin_headers, project):
        today = datetime.utcnow().date()

        by_action = client.get(url(tenant, "/activity-log?action=create"), headers=admin_headers).json()
        assert by_action["total"] == 1

        in_range = client.get(
            url(tenant, f"/activity-log?dateFrom={today}&dateTo={today}"),
            headers=admin_headers,
        ).json()
        assert in_range["total"] == 1

        past = today - timedelta(days=10)
        out_of_range = client.get(
            url(tenant, f"/activity-log?dateFrom={past}&dateTo={past}"),
            headers=admin_headers,
        ).json()
        assert out_of_range["total"] == 0

    def test_inverted_date_range(self, client, tenant, admin_headers):
        today = datetime.utcnow().date()
        response = client.get(
            url(tenant, f"/activity-log?dateFrom={today}&dateTo={today - timedelta(days=1)}"),
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_other_tenants_activity_is_invisible(self, client, tenant, other_tenant, admin_headers,
                                                 add_member, admin_user, project):
        add_member(other_tenant, admin_user, OrgRole.TENANT_ADMIN)
        body = client.get(url(other_tenant, "/activity-log"), headers=admin_headers).json()
        assert body["total"] == 0

    @pytest.mark.parametrize("role,expected", [
        (OrgRole.PROJECT_MANAGER, 200),
        (OrgRole.SENIOR_CONSULTANT, 403),
        (OrgRole.CLIENT_VIEWER, 403),
    ])
    def test_who_can_read(self, client, tenant, member_headers, role, expected):
        assert client.get(url(tenant, "/activity-log"), headers=member_headers(role)).status_code == expected


class TestAdmin:

    @pytest.fixture
    def root_headers(self, super_admin, headers_for):
        return headers_for(super_admin)

    def test_requires_super_admin(self, client, tenant, admin_headers):
        assert client.get("/api/v1/admin/tenants", headers=admin_headers).status_code == 403
        assert client.get("/api/v1/admin/tenants").status_code == 401

    def test_list_and_get_tenants(self, client, tenant, other_tenant, root_headers):
        body = client.get("/api/v1/admin/tenants", headers=root_headers).json()
        assert body["total"] == 2

        acme = next(t for t in body["data"] if t["slug"] == tenant.slug)
        assert acme["member_count"] == 1
        assert acme["plan_slug"] == "professional"
        assert acme["subscription_status"] == "trialing"

        single = client.get(f"/api/v1/admin/tenants/{tenant.id}", headers=root_headers).json()["data"]
        assert single["id"] == tenant.id

        assert client.get("/api/v1/admin/tenants/missing", headers=root_headers).status_code == 404

    def test_suspend_locks_members_out(self, client, tenant, admin_headers, root_headers):
        response = client.patch(
            f"/api/v1/admin/tenants/{tenant.id}/status",
            json={"status": "suspended"},
            headers=root_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "suspended"

        assert client.get(url(tenant, "/projects"), headers=admin_headers).status_code == 403

        client.patch(f"/api/v1/admin/tenants/{tenant.id}/status", json={"status": "active"}, headers=root_headers)
        assert client.get(url(tenant, "/projects"), headers=admin_headers).status_code == 200

    def test_stats(self, client, tenant, other_tenant, project, root_headers):
        stats = client.get("/api/v1/admin/stats", headers=root_headers).json()["data"]

        assert stats["total_tenants"] == 2
        assert stats["tenants_by_status"] == {"trial": 2}
        assert stats["total_projects"] == 1
        assert stats["active_subscriptions"] == 2
        assert stats["total_users"] >= 3

    def test_plans(self, client, root_headers):
        plans = client.get("/api/v1/admin/plans", headers=root_headers).json()["data"]
        assert [p["slug"] for p in plans] == ["starter", "professional", "enterprise"]

        new_plan = {
            "slug": "consultancy-plus",
            "name": "Consultancy Plus",
            "price_monthly": "1497.00",
            "max_users": 50,
            "max_projects": 100,
            "max_standards": 10,
            "max_storage": 51200,
            "max_clients": 100,
            "features": {"risks": True, "apiAccess": True},
        }
        created = client.post("/api/v1/admin/plans", json=new_plan, headers=root_headers)
        assert created.status_code == 201
        plan_id = created.json()["data"]["id"]

        duplicate = client.post("/api/v1/admin/plans", json=new_plan, headers=root_headers)
        assert duplicate.status_code == 409

        updated = client.patch(f"/api/v1/admin/plans/{plan_id}", json={"max_users": 60}, headers=root_headers)
        assert updated.json()["data"]["max_users"] == 60


class TestErrorEnvelope:

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nowhere")
        assert response.status_code == 404
        assert "error" in response.json()

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "trace-abc-123"})
        assert response.headers["X-Request-ID"] == "trace-abc-123"
        assert "X-Process-Time" in response.headers

    def test_request_id_is_generated(self, client):
        response = client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
        generated = response.headers["X-Request-ID"]
        assert generated != "bad id with spaces"
        assert len(generated) == 36

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["environment"] == "test"

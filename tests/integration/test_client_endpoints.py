"""
Integration tests for consulting clients and their link to projects.
"""
import pytest

from isoqms.core.plan_limits import get_or_create_plan
from isoqms.models.membership import OrgRole
from isoqms.models.subscription import Subscription


def url(tenant, path=""):
    return f"/api/v1/tenants/{tenant.slug}{path}"


@pytest.fixture
def consulting_client(client, tenant, admin_headers):
    response = client.post(url(tenant, "/clients"), json={
        "name": "Metalurgica Paulista",
        "cnpj": "98.765.432/0001-10",
        "contact_name": "Ana Souza",
        "contact_email": "ana@metalurgica.example.com",
        "sector": "manufacturing",
    }, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestClients:

    def test_crud(self, client, tenant, admin_headers, consulting_client):
        assert consulting_client["status"] == "active"
        assert consulting_client["tenant_id"] == tenant.id

        listing = client.get(url(tenant, "/clients"), headers=admin_headers).json()
        assert listing["total"] == 1

        updated = client.patch(
            url(tenant, f"/clients/{consulting_client['id']}"),
            json={"status": "inactive", "sector": "metalworking"},
            headers=admin_headers,
        ).json()["data"]
        assert updated["status"] == "inactive"
        assert updated["sector"] == "metalworking"

        deleted = client.delete(url(tenant, f"/clients/{consulting_client['id']}"), headers=admin_headers)
        assert deleted.json() == {"data": {"deleted": True}}
        assert client.get(url(tenant, f"/clients/{consulting_client['id']}"), headers=admin_headers).status_code == 404

    def test_filters(self, client, tenant, admin_headers, consulting_client):
        client.post(url(tenant, "/clients"), json={"name": "Hospital Central"}, headers=admin_headers)

        by_name = client.get(url(tenant, "/clients?search=hospital"), headers=admin_headers).json()
        assert [c["name"] for c in by_name["data"]] == ["Hospital Central"]

        inactive = client.get(url(tenant, "/clients?status=inactive"), headers=admin_headers).json()
        assert inactive["total"] == 0

    def test_invalid_contact_email(self, client, tenant, admin_headers):
        response = client.post(url(tenant, "/clients"), json={
            "name": "Bad Email Ltda",
            "contact_email": "not-an-email",
        }, headers=admin_headers)
        assert response.status_code == 400
        assert "contact_email" in response.json()["details"]

    def test_null_name_is_rejected(self, client, tenant, admin_headers, consulting_client):
        response = client.patch(
            url(tenant, f"/clients/{consulting_client['id']}"),
            json={"name": None},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_plan_limit(self, client, db, tenant, admin_headers):
        subscription = db.query(Subscription).filter(Subscription.tenant_id == tenant.id).one()
        subscription.plan_id = get_or_create_plan(db, "starter").id
        db.commit()

        for i in range(3):
            response = client.post(url(tenant, "/clients"), json={"name": f"Client {i}"}, headers=admin_headers)
            assert response.status_code == 201

        response = client.post(url(tenant, "/clients"), json={"name": "One too many"}, headers=admin_headers)
        assert response.status_code == 402
        assert response.json()["resource"] == "clients"
        assert (response.json()["current"], response.json()["limit"]) == (3, 3)

        usage = client.get(url(tenant, "/subscription"), headers=admin_headers).json()["data"]["usage"]
        assert usage["clients"]["current"] == 3

    @pytest.mark.parametrize("role,expected", [
        (OrgRole.PROJECT_MANAGER, 403),
        (OrgRole.SENIOR_CONSULTANT, 403),
        (OrgRole.CLIENT_VIEWER, 403),
    ])
    def test_only_admin_creates(self, client, tenant, member_headers, role, expected):
        response = client.post(url(tenant, "/clients"), json={"name": "Nope"}, headers=member_headers(role))
        assert response.status_code == expected

    def test_consultant_reads_viewer_does_not(self, client, tenant, member_headers, consulting_client):
        consultant = client.get(url(tenant, "/clients"), headers=member_headers(OrgRole.JUNIOR_CONSULTANT))
        assert consultant.status_code == 200

        viewer = client.get(url(tenant, "/clients"), headers=member_headers(OrgRole.CLIENT_VIEWER))
        assert viewer.status_code == 403

    def test_other_tenant_cannot_see_client(self, client, tenant, other_tenant, admin_headers,
                                            add_member, admin_user, consulting_client):
        add_member(other_tenant, admin_user, OrgRole.TENANT_ADMIN)
        response = client.get(url(other_tenant, f"/clients/{consulting_client['id']}"), headers=admin_headers)
        assert response.status_code == 404


class TestClientProjects:

    def test_project_linked_to_client(self, client, tenant, admin_headers, consulting_client):
        project = client.post(url(tenant, "/projects"), json={
            "name": "ISO 9001 for Metalurgica",
            "client_id": consulting_client["id"],
        }, headers=admin_headers).json()["data"]
        assert project["client_id"] == consulting_client["id"]

        detail = client.get(url(tenant, f"/clients/{consulting_client['id']}"), headers=admin_headers).json()["data"]
        assert [p["id"] for p in detail["projects"]] == [project["id"]]

        filtered = client.get(
            url(tenant, f"/projects?clientId={consulting_client['id']}"),
            headers=admin_headers,
        ).json()
        assert filtered["total"] == 1

    def test_unknown_client_is_rejected(self, client, tenant, admin_headers, project):
        response = client.post(url(tenant, "/projects"), json={
            "name": "Orphan",
            "client_id": "00000000-0000-0000-0000-000000000000",
        }, headers=admin_headers)
        assert response.status_code == 404

        response = client.patch(
            url(tenant, f"/projects/{project['id']}"),
            json={"client_id": "00000000-0000-0000-0000-000000000000"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_delete_client_unlinks_projects(self, client, tenant, admin_headers, consulting_client):
        project = client.post(url(tenant, "/projects"), json={
            "name": "ISO 14001 for Metalurgica",
            "client_id": consulting_client["id"],
        }, headers=admin_headers).json()["data"]

        client.delete(url(tenant, f"/clients/{consulting_client['id']}"), headers=admin_headers)

        current = client.get(url(tenant, f"/projects/{project['id']}"), headers=admin_headers)
        assert current.status_code == 200
        assert current.json()["data"]["client_id"] is None

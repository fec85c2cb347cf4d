"""
Integration tests for tenants, members, invitations and tenant isolation.
"""
import pytest

from isoqms.models.membership import OrgRole


class TestTenants:

    def test_create_tenant(self, client, admin_headers):
        response = client.post("/api/v1/tenants", json={"name": "Nova Gestão"}, headers=admin_headers)

        assert response.status_code == 201
        tenant = response.json()["data"]
        assert tenant["slug"] == "nova-gestao"
        assert tenant["status"] == "trial"

        mine = client.get("/api/v1/user/tenants", headers=admin_headers).json()["data"]
        roles = {entry["tenant"]["slug"]: entry["role"] for entry in mine}
        assert roles["nova-gestao"] == "tenant_admin"

    def test_create_requires_authentication(self, client):
        assert client.post("/api/v1/tenants", json={"name": "Anon"}).status_code == 401

    def test_get_and_update_settings(self, client, tenant, admin_headers):
        response = client.patch(
            f"/api/v1/tenants/{tenant.slug}",
            json={"name": "Acme Consultoria ISO", "settings": {"locale": "pt-BR"}},
            headers=admin_headers,
        )
        assert response.status_code == 200

        current = client.get(f"/api/v1/tenants/{tenant.slug}", headers=admin_headers).json()["data"]
        assert current["name"] == "Acme Consultoria ISO"
        assert current["settings"] == {"locale": "pt-BR"}
        assert current["slug"] == tenant.slug

    def test_settings_hidden_without_settings_read(self, client, tenant, admin_headers, member_headers):
        client.patch(
            f"/api/v1/tenants/{tenant.slug}",
            json={"cnpj": "12.345.678/0001-90", "settings": {"locale": "pt-BR"}},
            headers=admin_headers,
        )

        viewer = client.get(f"/api/v1/tenants/{tenant.slug}", headers=member_headers(OrgRole.CLIENT_VIEWER))
        assert viewer.status_code == 200
        assert viewer.json()["data"]["name"] == tenant.name
        assert viewer.json()["data"]["settings"] == {}
        assert viewer.json()["data"]["cnpj"] is None

        manager = client.get(f"/api/v1/tenants/{tenant.slug}", headers=member_headers(OrgRole.PROJECT_MANAGER))
        assert manager.json()["data"]["settings"] == {"locale": "pt-BR"}

    def test_null_name_is_rejected(self, client, tenant, admin_headers):
        response = client.patch(f"/api/v1/tenants/{tenant.slug}", json={"name": None}, headers=admin_headers)
        assert response.status_code == 400
        assert "name" in response.json()["details"]

    def test_only_admin_updates_settings(self, client, tenant, member_headers):
        headers = member_headers(OrgRole.PROJECT_MANAGER)
        response = client.patch(f"/api/v1/tenants/{tenant.slug}", json={"name": "Hijacked"}, headers=headers)
        assert response.status_code == 403

    def test_subscription_usage(self, client, tenant, admin_headers):
        data = client.get(f"/api/v1/tenants/{tenant.slug}/subscription", headers=admin_headers).json()["data"]

        assert data["plan"]["max_projects"] == 15
        assert data["features"]["risks"] is True
        assert data["features"]["apiAccess"] is False
        assert data["usage"]["users"] == {"current": 1, "limit": 10, "allowed": True}

    def test_unknown_tenant(self, client, admin_headers):
        response = client.get("/api/v1/tenants/no-such-tenant/projects", headers=admin_headers)
        assert response.status_code == 404

    def test_suspended_tenant_is_locked(self, client, db, tenant, admin_headers):
        tenant.status = "suspended"
        db.commit()

        response = client.get(f"/api/v1/tenants/{tenant.slug}/projects", headers=admin_headers)
        assert response.status_code == 403


class TestIsolation:
    """A user only reaches tenants they are a member of."""

    def test_non_member_is_forbidden(self, client, tenant, outsider, headers_for):
        response = client.get(f"/api/v1/tenants/{tenant.slug}/projects", headers=headers_for(outsider))

        assert response.status_code == 403
        assert response.json() == {"error": "You are not a member of this organization"}

    def test_super_admin_is_not_a_member(self, client, tenant, super_admin, headers_for):
        response = client.get(f"/api/v1/tenants/{tenant.slug}/projects", headers=headers_for(super_admin))
        assert response.status_code == 403

    def test_member_of_one_tenant_cannot_reach_another(self, client, tenant, other_tenant, admin_headers):
        own = client.get(f"/api/v1/tenants/{tenant.slug}/projects", headers=admin_headers)
        other = client.get(f"/api/v1/tenants/{other_tenant.slug}/projects", headers=admin_headers)

        assert own.status_code == 200
        assert other.status_code == 403

    def test_foreign_ids_are_not_found(self, client, tenant, other_tenant, admin_headers, project, add_member, admin_user):
        add_member(other_tenant, admin_user, OrgRole.TENANT_ADMIN)

        response = client.get(
            f"/api/v1/tenants/{other_tenant.slug}/projects/{project['id']}",
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_foreign_project_reference_is_rejected(self, client, tenant, other_tenant, admin_headers,
                                                    project, add_member, admin_user):
        add_member(other_tenant, admin_user, OrgRole.TENANT_ADMIN)

        response = client.post(
            f"/api/v1/tenants/{other_tenant.slug}/risks",
            json={
                "project_id": project["id"],
                "title": "Cross-tenant risk",
                "description": "Should not attach",
                "category": "operational",
                "probability": 2,
                "impact": 2,
            },
            headers=admin_headers,
        )
        assert response.status_code == 404


class TestMembers:

    def test_list_members(self, client, tenant, admin_headers, member_headers):
        member_headers(OrgRole.CLIENT_VIEWER)

        body = client.get(f"/api/v1/tenants/{tenant.slug}/members", headers=admin_headers).json()
        assert body["total"] == 2
        assert {m["role"] for m in body["data"]} == {"tenant_admin", "client_viewer"}
        assert all("email" in m["user"] for m in body["data"])

    def test_change_role_and_remove(self, client, tenant, admin_headers, member_headers):
        member_headers(OrgRole.JUNIOR_CONSULTANT)
        members = client.get(f"/api/v1/tenants/{tenant.slug}/members", headers=admin_headers).json()["data"]
        junior = next(m for m in members if m["role"] == "junior_consultant")

        response = client.patch(
            f"/api/v1/tenants/{tenant.slug}/members/{junior['id']}",
            json={"role": "senior_consultant"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["role"] == "senior_consultant"

        response = client.delete(f"/api/v1/tenants/{tenant.slug}/members/{junior['id']}", headers=admin_headers)
        assert response.json() == {"data": {"deleted": True}}

    def test_last_admin_cannot_be_demoted(self, client, tenant, admin_headers):
        members = client.get(f"/api/v1/tenants/{tenant.slug}/members", headers=admin_headers).json()["data"]

        response = client.patch(
            f"/api/v1/tenants/{tenant.slug}/members/{members[0]['id']}",
            json={"role": "client_viewer"},
            headers=admin_headers,
        )
        assert response.status_code == 403

    def test_manager_cannot_remove_members(self, client, tenant, admin_headers, member_headers):
        headers = member_headers(OrgRole.PROJECT_MANAGER)
        members = client.get(f"/api/v1/tenants/{tenant.slug}/members", headers=admin_headers).json()["data"]
        admin = next(m for m in members if m["role"] == "tenant_admin")

        response = client.delete(f"/api/v1/tenants/{tenant.slug}/members/{admin['id']}", headers=headers)
        assert response.status_code == 403


class TestInvitationFlow:

    def test_invite_lookup_accept(self, client, tenant, admin_headers, make_user, headers_for):
        response = client.post(
            f"/api/v1/tenants/{tenant.slug}/invitations",
            json={"email": "auditor@acme.com.br", "role": "internal_auditor"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        token = response.json()["data"]["token"]

        info = client.get(f"/api/v1/invitations/{token}").json()["data"]
        assert info["valid"] is True
        assert info["tenant_slug"] == tenant.slug
        assert info["role"] == "internal_auditor"

        invitee = make_user("auditor@acme.com.br")
        accepted = client.post(f"/api/v1/invitations/{token}/accept", headers=headers_for(invitee))
        assert accepted.status_code == 200
        assert accepted.json()["data"]["tenant_slug"] == tenant.slug

        projects = client.get(f"/api/v1/tenants/{tenant.slug}/projects", headers=headers_for(invitee))
        assert projects.status_code == 200

        info = client.get(f"/api/v1/invitations/{token}").json()["data"]
        assert info["valid"] is False

    def test_revoke(self, client, tenant, admin_headers):
        created = client.post(
            f"/api/v1/tenants/{tenant.slug}/invitations",
            json={"email": "someone@acme.com.br", "role": "client_viewer"},
            headers=admin_headers,
        ).json()["data"]

        response = client.delete(f"/api/v1/tenants/{tenant.slug}/invitations/{created['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "revoked"

    def test_consultant_cannot_invite(self, client, tenant, member_headers):
        headers = member_headers(OrgRole.SENIOR_CONSULTANT)
        response = client.post(
            f"/api/v1/tenants/{tenant.slug}/invitations",
            json={"email": "friend@acme.com.br", "role": "tenant_admin"},
            headers=headers,
        )
        assert response.status_code == 403

    def test_invalid_role(self, client, tenant, admin_headers):
        response = client.post(
            f"/api/v1/tenants/{tenant.slug}/invitations",
            json={"email": "friend@acme.com.br", "role": "owner"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("path", ["/api/v1/invitations/bogus", "/api/v1/invitations/bogus/accept"])
    def test_unknown_token(self, client, admin_headers, path):
        method = client.post if path.endswith("accept") else client.get
        assert method(path, headers=admin_headers).status_code == 404

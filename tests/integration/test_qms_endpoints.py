"""
Integration tests for projects, nonconformities, action plans, risks and audits.
"""
import re
from datetime import datetime

import pytest

from isoqms.core.plan_limits import get_or_create_plan
from isoqms.models.membership import OrgRole
from isoqms.models.subscription import Subscription

YEAR = datetime.utcnow().year


def url(tenant, path=""):
    return f"/api/v1/tenants/{tenant.slug}{path}"


@pytest.fixture
def nonconformity(client, tenant, admin_headers, project):
    response = client.post(url(tenant, "/nonconformities"), json={
        "project_id": project["id"],
        "title": "Calibration records missing",
        "description": "Two gauges without calibration certificates",
        "origin": "audit",
        "severity": "minor",
    }, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def risk(client, tenant, admin_headers, project):
    response = client.post(url(tenant, "/risks"), json={
        "project_id": project["id"],
        "title": "Key supplier insolvency",
        "description": "Single source for critical component",
        "category": "operational",
        "probability": 2,
        "impact": 4,
    }, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestProjects:

    def test_crud(self, client, tenant, admin_headers, project):
        listing = client.get(url(tenant, "/projects"), headers=admin_headers).json()
        assert listing["total"] == 1
        assert listing["page"] == 1
        assert listing["pageSize"] == 20

        updated = client.patch(
            url(tenant, f"/projects/{project['id']}"),
            json={"status": "in_progress", "progress": 40},
            headers=admin_headers,
        ).json()["data"]
        assert updated["status"] == "in_progress"
        assert updated["progress"] == 40

        deleted = client.delete(url(tenant, f"/projects/{project['id']}"), headers=admin_headers)
        assert deleted.json() == {"data": {"deleted": True}}
        assert client.get(url(tenant, f"/projects/{project['id']}"), headers=admin_headers).status_code == 404

    def test_end_before_start_is_rejected(self, client, tenant, admin_headers):
        response = client.post(url(tenant, "/projects"), json={
            "name": "Backwards",
            "start_date": "2026-05-01",
            "end_date": "2026-01-01",
        }, headers=admin_headers)
        assert response.status_code == 400

    def test_plan_limit(self, client, db, tenant, admin_headers):
        subscription = db.query(Subscription).filter(Subscription.tenant_id == tenant.id).one()
        subscription.plan_id = get_or_create_plan(db, "starter").id
        db.commit()

        ids = []
        for i in range(3):
            response = client.post(url(tenant, "/projects"), json={"name": f"Project {i}"}, headers=admin_headers)
            assert response.status_code == 201
            ids.append(response.json()["data"]["id"])

        response = client.post(url(tenant, "/projects"), json={"name": "One too many"}, headers=admin_headers)
        assert response.status_code == 402
        assert response.json()["resource"] == "projects"
        assert (response.json()["current"], response.json()["limit"]) == (3, 3)

        client.patch(url(tenant, f"/projects/{ids[0]}"), json={"status": "archived"}, headers=admin_headers)
        response = client.post(url(tenant, "/projects"), json={"name": "Fits again"}, headers=admin_headers)
        assert response.status_code == 201

        response = client.patch(url(tenant, f"/projects/{ids[0]}"), json={"status": "planning"}, headers=admin_headers)
        assert response.status_code == 402

    @pytest.mark.parametrize("field", ["name", "status", "progress"])
    def test_null_on_required_field_is_rejected(self, client, tenant, admin_headers, project, field):
        response = client.patch(url(tenant, f"/projects/{project['id']}"), json={field: None}, headers=admin_headers)
        assert response.status_code == 400
        assert field in response.json()["details"]

    def test_null_description_is_allowed(self, client, tenant, admin_headers, project):
        response = client.patch(
            url(tenant, f"/projects/{project['id']}"),
            json={"description": None},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["description"] is None

    def test_pagination(self, client, tenant, admin_headers):
        for i in range(5):
            client.post(url(tenant, "/projects"), json={"name": f"Project {i}"}, headers=admin_headers)

        page = client.get(url(tenant, "/projects?page=2&pageSize=2"), headers=admin_headers).json()
        assert page["total"] == 5
        assert len(page["data"]) == 2
        assert (page["page"], page["pageSize"]) == (2, 2)

        too_big = client.get(url(tenant, "/projects?pageSize=1000"), headers=admin_headers)
        assert too_big.status_code == 400

    @pytest.mark.parametrize("role,expected", [
        (OrgRole.PROJECT_MANAGER, 201),
        (OrgRole.SENIOR_CONSULTANT, 403),
        (OrgRole.CLIENT_VIEWER, 403),
    ])
    def test_create_permission_by_role(self, client, tenant, member_headers, role, expected):
        response = client.post(url(tenant, "/projects"), json={"name": "By role"}, headers=member_headers(role))
        assert response.status_code == expected

    def test_viewer_can_read(self, client, tenant, member_headers, project):
        response = client.get(url(tenant, "/projects"), headers=member_headers(OrgRole.CLIENT_VIEWER))
        assert response.status_code == 200
        assert response.json()["total"] == 1


class TestNonconformities:

    def test_code_and_defaults(self, client, tenant, admin_headers, nonconformity, project):
        assert nonconformity["code"] == f"NC-{YEAR}-001"
        assert nonconformity["status"] == "open"

        second = client.post(url(tenant, "/nonconformities"), json={
            "project_id": project["id"],
            "title": "Second finding",
            "description": "Another one",
            "origin": "internal",
            "severity": "major",
        }, headers=admin_headers).json()["data"]
        assert second["code"] == f"NC-{YEAR}-002"

    def test_close_sets_closed_at_and_reopen_clears_it(self, client, tenant, admin_headers, nonconformity):
        path = url(tenant, f"/nonconformities/{nonconformity['id']}")

        closed = client.patch(path, json={"status": "closed"}, headers=admin_headers).json()["data"]
        assert closed["closed_at"] is not None

        reopened = client.patch(path, json={"status": "open"}, headers=admin_headers).json()["data"]
        assert reopened["closed_at"] is None

    def test_null_title_and_status_are_rejected(self, client, tenant, admin_headers, nonconformity):
        response = client.patch(
            url(tenant, f"/nonconformities/{nonconformity['id']}"),
            json={"title": None, "status": None},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert {"title", "status"} <= set(response.json()["details"])

    def test_filters(self, client, tenant, admin_headers, nonconformity):
        minor = client.get(url(tenant, "/nonconformities?severity=minor"), headers=admin_headers).json()
        major = client.get(url(tenant, "/nonconformities?severity=major"), headers=admin_headers).json()
        assert minor["total"] == 1
        assert major["total"] == 0

    def test_responsible_must_be_member(self, client, tenant, admin_headers, nonconformity, outsider):
        response = client.patch(
            url(tenant, f"/nonconformities/{nonconformity['id']}"),
            json={"responsible_id": outsider.id},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "responsible_id" in response.json()["details"]

    def test_root_cause_upsert(self, client, tenant, admin_headers, nonconformity):
        path = url(tenant, f"/nonconformities/{nonconformity['id']}/root-cause")
        assert client.get(path, headers=admin_headers).status_code == 404

        created = client.put(path, json={
            "method": "five_whys",
            "analysis": {"whys": ["No schedule", "No owner"]},
        }, headers=admin_headers).json()["data"]

        replaced = client.put(path, json={
            "method": "ishikawa",
            "analysis": {"method": ["No procedure"]},
            "conclusion": "Calibration procedure missing",
        }, headers=admin_headers).json()["data"]

        assert replaced["id"] == created["id"]
        assert client.get(path, headers=admin_headers).json()["data"]["method"] == "ishikawa"

    def test_auditor_can_raise_but_not_edit(self, client, tenant, member_headers, project, nonconformity):
        headers = member_headers(OrgRole.INTERNAL_AUDITOR)
        created = client.post(url(tenant, "/nonconformities"), json={
            "project_id": project["id"],
            "title": "Raised by auditor",
            "description": "Observed in the field",
            "origin": "audit",
            "severity": "observation",
        }, headers=headers)
        assert created.status_code == 201

        edit = client.patch(
            url(tenant, f"/nonconformities/{nonconformity['id']}"),
            json={"title": "Edited by auditor"},
            headers=headers,
        )
        assert edit.status_code == 403


class TestActionPlans:

    def test_lifecycle(self, client, tenant, admin_headers, project, nonconformity):
        action = client.post(url(tenant, "/action-plans"), json={
            "project_id": project["id"],
            "title": "Calibrate gauges",
            "description": "Send gauges to accredited lab",
            "type": "corrective",
            "nonconformity_id": nonconformity["id"],
        }, headers=admin_headers).json()["data"]
        assert re.fullmatch(rf"AP-{YEAR}-001", action["code"])
        assert action["completed_at"] is None

        path = url(tenant, f"/action-plans/{action['id']}")
        completed = client.patch(path, json={"status": "completed"}, headers=admin_headers).json()["data"]
        assert completed["completed_at"] is not None

        effective = client.patch(path, json={"status": "effective"}, headers=admin_headers).json()["data"]
        assert effective["is_effective"] is True
        assert effective["completed_at"] == completed["completed_at"]

        listing = client.get(
            url(tenant, f"/action-plans?nonconformityId={nonconformity['id']}"),
            headers=admin_headers,
        ).json()
        assert listing["total"] == 1

        detail = client.get(url(tenant, f"/nonconformities/{nonconformity['id']}"), headers=admin_headers).json()
        assert [a["id"] for a in detail["data"]["action_plans"]] == [action["id"]]

    def test_unknown_nonconformity(self, client, tenant, admin_headers, project):
        response = client.post(url(tenant, "/action-plans"), json={
            "project_id": project["id"],
            "title": "Orphan",
            "description": "Points nowhere",
            "type": "corrective",
            "nonconformity_id": "does-not-exist",
        }, headers=admin_headers)
        assert response.status_code == 404


class TestRisks:

    def test_level_is_derived(self, risk):
        assert risk["code"] == f"RSK-{YEAR}-001"
        assert risk["risk_level"] == "medium"
        assert risk["status"] == "identified"

    def test_score_change_writes_history(self, client, tenant, admin_headers, risk):
        path = url(tenant, f"/risks/{risk['id']}")

        renamed = client.patch(path, json={"title": "Supplier insolvency"}, headers=admin_headers).json()["data"]
        assert renamed["risk_level"] == "medium"
        assert client.get(f"{path}/history", headers=admin_headers).json()["data"] == []

        rescored = client.patch(path, json={"probability": 5, "impact": 5}, headers=admin_headers).json()["data"]
        assert rescored["risk_level"] == "very_high"

        history = client.get(f"{path}/history", headers=admin_headers).json()["data"]
        assert len(history) == 1
        assert history[0]["risk_level"] == "very_high"

    def test_review_always_records(self, client, tenant, admin_headers, risk):
        path = url(tenant, f"/risks/{risk['id']}/history")
        response = client.post(path, json={
            "probability": 2,
            "impact": 4,
            "residual_probability": 1,
            "residual_impact": 2,
            "status": "monitored",
            "review_notes": "Second source qualified",
        }, headers=admin_headers)

        assert response.status_code == 201
        entry = response.json()["data"]
        assert entry["status"] == "monitored"
        assert entry["review_notes"] == "Second source qualified"

        current = client.get(url(tenant, f"/risks/{risk['id']}"), headers=admin_headers).json()["data"]
        assert current["last_review_date"] is not None
        assert current["residual_impact"] == 2

    @pytest.mark.parametrize("probability,impact", [(0, 3), (3, 6)])
    def test_out_of_range_scores(self, client, tenant, admin_headers, project, probability, impact):
        response = client.post(url(tenant, "/risks"), json={
            "project_id": project["id"],
            "title": "Bad score",
            "description": "Invalid",
            "category": "financial",
            "probability": probability,
            "impact": impact,
        }, headers=admin_headers)
        assert response.status_code == 400

    def test_filter_by_level(self, client, tenant, admin_headers, risk):
        assert client.get(url(tenant, "/risks?riskLevel=medium"), headers=admin_headers).json()["total"] == 1
        assert client.get(url(tenant, "/risks?riskLevel=high"), headers=admin_headers).json()["total"] == 0


class TestAudits:

    def test_audit_with_findings(self, client, tenant, admin_headers, project, nonconformity):
        audit = client.post(url(tenant, "/audits"), json={
            "project_id": project["id"],
            "title": "Internal audit Q1",
            "type": "internal",
            "start_date": "2026-03-02",
            "end_date": "2026-03-03",
        }, headers=admin_headers).json()["data"]
        assert audit["code"] == f"AUD-{YEAR}-001"
        assert audit["status"] == "planned"

        path = url(tenant, f"/audits/{audit['id']}/findings")
        finding = client.post(path, json={
            "classification": "minor_nc",
            "description": "Calibration overdue",
            "nonconformity_id": nonconformity["id"],
        }, headers=admin_headers)
        assert finding.status_code == 201

        findings = client.get(path, headers=admin_headers).json()["data"]
        assert [f["classification"] for f in findings] == ["minor_nc"]

        detail = client.get(url(tenant, f"/audits/{audit['id']}"), headers=admin_headers).json()["data"]
        assert len(detail["findings"]) == 1

    def test_end_before_start(self, client, tenant, admin_headers, project):
        response = client.post(url(tenant, "/audits"), json={
            "project_id": project["id"],
            "title": "Backwards audit",
            "type": "external",
            "start_date": "2026-03-10",
            "end_date": "2026-03-01",
        }, headers=admin_headers)
        assert response.status_code == 400

    def test_consultant_cannot_create_audits(self, client, tenant, member_headers, project):
        response = client.post(url(tenant, "/audits"), json={
            "project_id": project["id"],
            "title": "Not allowed",
            "type": "internal",
            "start_date": "2026-03-02",
        }, headers=member_headers(OrgRole.SENIOR_CONSULTANT))
        assert response.status_code == 403

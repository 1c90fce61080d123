from datetime import timedelta

from conftest import TODAY, auth_headers, make_deadline, make_organization, make_user, subscribe
from core.template_catalog import DEFAULT_TEMPLATES, seed_deadline_templates
from models.models import UserRole


def _payload(**overrides):
    payload = {
        "title": "  General Liability Policy  ",
        "due_date": (TODAY + timedelta(days=5)).isoformat(),
        "category": "insurance",
        "consequence_level": "critical",
    }
    payload.update(overrides)
    return payload


def test_create_returns_derived_urgency(client, session):
    user = make_user(session)

    response = client.post("/deadlines/", json=_payload(), headers=auth_headers(user))

    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "General Liability Policy"
    assert body["status"] == "urgent"
    assert body["status_label"] == "Urgent"
    assert body["days_until_due"] == 5
    assert body["due_label"] == "5 days"
    assert body["recurrence_label"] == "One-time"
    assert body["user_id"] == user.id
    assert body["organization_id"] is None


def test_create_validation_errors(client, session):
    headers = auth_headers(make_user(session))
    assert client.post("/deadlines/", json=_payload(title="   "), headers=headers).status_code == 422
    assert client.post("/deadlines/", json=_payload(title="x" * 201), headers=headers).status_code == 422
    assert client.post("/deadlines/", json=_payload(category="tax"), headers=headers).status_code == 422
    assert client.post("/deadlines/", json=_payload(estimated_cost=-1), headers=headers).status_code == 422
    assert client.post("/deadlines/", json=_payload(auto_renew=True), headers=headers).status_code == 422


def test_sixth_free_deadline_is_a_quota_error(client, session):
    user = make_user(session)
    for i in range(5):
        make_deadline(session, user, TODAY, title=f"D{i}")

    response = client.post("/deadlines/", json=_payload(), headers=auth_headers(user))

    assert response.status_code == 402
    assert response.json()["error"] == "quota_exceeded"


def test_recurring_on_free_plan_is_a_feature_error(client, session):
    user = make_user(session)
    response = client.post("/deadlines/", json=_payload(recurrence="annual"), headers=auth_headers(user))
    assert response.status_code == 402
    assert response.json()["error"] == "plan_feature_unavailable"


def test_list_is_sorted_and_filterable(client, session):
    user = make_user(session)
    make_deadline(session, user, TODAY + timedelta(days=60), title="Safe", category="license")
    make_deadline(session, user, TODAY - timedelta(days=2), title="Overdue", category="insurance")
    make_deadline(session, user, TODAY + timedelta(days=10), title="Warning", category="license")
    headers = auth_headers(user)

    titles = [d["title"] for d in client.get("/deadlines/", headers=headers).json()]
    assert titles == ["Overdue", "Warning", "Safe"]

    licenses = client.get("/deadlines/", params={"category": "license"}, headers=headers).json()
    assert [d["title"] for d in licenses] == ["Warning", "Safe"]

    overdue = client.get("/deadlines/", params={"status": "overdue"}, headers=headers).json()
    assert [d["title"] for d in overdue] == ["Overdue"]


def test_summary(client, session):
    user = make_user(session)
    make_deadline(session, user, TODAY + timedelta(days=2), title="A", category="license")
    make_deadline(session, user, TODAY + timedelta(days=1), title="B", category="license")
    make_deadline(session, user, TODAY + timedelta(days=40), title="C", category="contract")

    body = client.get("/deadlines/summary", headers=auth_headers(user)).json()

    assert body["total"] == 3
    assert body["counts"]["critical"] == 2
    assert body["counts"]["safe"] == 1
    assert body["by_category"]["license"] == 2
    assert body["overall_status"] == "critical"
    assert body["message"] == "2 critical deadlines due within 3 days"


def test_org_sharing_and_permissions(client, session):
    org = make_organization(session)
    admin = make_user(session, "admin@acme.com", role=UserRole.ORG_ADMIN.value, organization_id=org.id)
    member = make_user(session, "member@acme.com", role=UserRole.ORG_MEMBER.value, organization_id=org.id)
    other = make_user(session, "other@acme.com", role=UserRole.ORG_MEMBER.value, organization_id=org.id)
    outsider = make_user(session, "outsider@example.com")

    created = client.post(
        "/deadlines/", json=_payload(share_with_organization=True), headers=auth_headers(member)
    ).json()
    assert created["organization_id"] == org.id
    url = f"/deadlines/{created['id']}"

    assert client.get(url, headers=auth_headers(other)).status_code == 200
    assert client.get(url, headers=auth_headers(outsider)).status_code == 404
    assert client.put(url, json={"title": "Nope"}, headers=auth_headers(other)).status_code == 403

    renamed = client.put(url, json={"title": "Renamed by admin"}, headers=auth_headers(admin))
    assert renamed.status_code == 200
    assert renamed.json()["title"] == "Renamed by admin"

    assert client.delete(url, headers=auth_headers(other)).status_code == 403
    assert client.delete(url, headers=auth_headers(admin)).status_code == 204
    assert client.get(url, headers=auth_headers(member)).status_code == 404


def test_update_partial_fields(client, session):
    user = make_user(session)
    deadline = make_deadline(session, user, TODAY + timedelta(days=40), description="Keep me")

    response = client.put(
        f"/deadlines/{deadline.id}",
        json={"due_date": (TODAY + timedelta(days=3)).isoformat()},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "critical"
    assert body["description"] == "Keep me"
    assert client.put(
        f"/deadlines/{deadline.id}", json={"title": None}, headers=auth_headers(user)
    ).status_code == 400


def test_manual_renew_once(client, session):
    user = make_user(session)
    subscribe(session, user, "pro")
    deadline = make_deadline(session, user, TODAY - timedelta(days=1), recurrence="semi_annual")
    headers = auth_headers(user)

    first = client.post(f"/deadlines/{deadline.id}/renew", headers=headers)
    assert first.status_code == 201
    assert first.json()["due_date"] == "2026-09-01"
    assert first.json()["parent_deadline_id"] == deadline.id

    second = client.post(f"/deadlines/{deadline.id}/renew", headers=headers)
    assert second.status_code == 409
    assert second.json()["details"]["successor_id"] == first.json()["id"]


# ------------------------
# Templates
# ------------------------
def test_templates_seed_is_idempotent(session):
    assert seed_deadline_templates(session) == len(DEFAULT_TEMPLATES)
    assert seed_deadline_templates(session) == 0


def test_template_filters_and_create_from_template(client, session):
    seed_deadline_templates(session)
    user = make_user(session)

    architecture = client.get("/templates/", params={"industry": "architecture"}).json()
    names = {t["name"] for t in architecture}
    assert "Architect License" in names
    assert "Workers Compensation" not in names

    insurance = client.get("/templates/", params={"category": "insurance"}).json()
    assert all(t["category"] == "insurance" for t in insurance)
    assert len(insurance) == 6

    template = next(t for t in architecture if t["name"] == "Architect License")
    response = client.post(
        f"/templates/{template['id']}/deadlines",
        json={"due_date": (TODAY + timedelta(days=90)).isoformat()},
        headers=auth_headers(user),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Architect License"
    assert body["issuing_authority"] == "State Board of Architecture"
    # Free plan: the biennial template becomes a one-off deadline
    assert body["recurrence"] == "none"

    subscribe(session, user, "pro")
    again = client.post(
        f"/templates/{template['id']}/deadlines",
        json={"due_date": (TODAY + timedelta(days=90)).isoformat()},
        headers=auth_headers(user),
    ).json()
    assert again["recurrence"] == "biennial"


def test_manual_renew_is_rate_limited(client, session):
    user = make_user(session)
    subscribe(session, user, "pro")
    deadline = make_deadline(session, user, TODAY, recurrence="monthly")
    for i in range(99):
        make_deadline(session, user, TODAY + timedelta(days=30), title=f"Bulk {i}")

    response = client.post(f"/deadlines/{deadline.id}/renew", headers=auth_headers(user))

    assert response.status_code == 429
    assert response.json()["error"] == "rate_limited"

from datetime import date, datetime, timedelta, timezone

from guardhub.models.models import Activity, FinancialRecord

from conftest import login


def test_client_crud_records_activity(as_admin, db):
    resp = as_admin.post("/api/clients", json={"name": "Aloha Resorts", "email": "ops@aloha.example"})
    assert resp.status_code == 201
    client_id = resp.json()["id"]

    resp = as_admin.put(f"/api/clients/{client_id}", json={"status": "inactive", "notes": ""})
    assert resp.status_code == 200
    assert resp.json()["status"] == "inactive"
    assert resp.json()["notes"] is None

    assert as_admin.delete(f"/api/clients/{client_id}").status_code == 200
    assert as_admin.get(f"/api/clients/{client_id}").status_code == 404

    kinds = [a.description.split(":")[0] for a in db.query(Activity).filter(Activity.entity_id == client_id)]
    assert sorted(kinds) == ["Created new client", "Deleted client", "Updated client"]


def test_client_contract_dates_must_be_ordered(as_admin):
    resp = as_admin.post("/api/clients", json={
        "name": "Backwards Inc", "contract_start": "2025-06-01", "contract_end": "2025-01-01",
    })
    assert resp.status_code == 422


def test_property_requires_existing_client(as_admin):
    resp = as_admin.post("/api/properties", json={
        "name": "Lot 7", "address": "7 Kapiolani Blvd", "client_id": "00000000-0000-0000-0000-000000000007",
    })
    assert resp.status_code == 422
    assert resp.json()["detail"][0]["loc"] == ["body", "client_id"]


def test_property_client_filter(as_admin):
    c = as_admin.post("/api/clients", json={"name": "Mauka Mall"}).json()
    as_admin.post("/api/properties", json={"name": "Mall East", "address": "1 Mauka St", "client_id": c["id"]})
    as_admin.post("/api/properties", json={"name": "Elsewhere", "address": "2 Makai St"})
    listed = as_admin.get("/api/properties", params={"client_id": c["id"]}).json()
    assert [p["name"] for p in listed] == ["Mall East"]


def test_patrol_report_flow(client, officer, supervisor, sent_mail):
    login(client, "officer")
    resp = client.post("/api/patrol-reports", json={
        "summary": "Quiet night", "checkpoints": ["Gate A", "Lobby"],
    })
    assert resp.status_code == 201
    report = resp.json()
    assert report["officer_id"] == str(officer.id)
    assert report["status"] == "in_progress"
    assert sent_mail and sent_mail[0]["subject"] == "Patrol Report Submitted"

    assert client.post(f"/api/patrol-reports/{report['id']}/review").status_code == 403

    login(client, "sup")
    resp = client.post(f"/api/patrol-reports/{report['id']}/review")
    assert resp.status_code == 200
    assert resp.json()["status"] == "reviewed"
    assert resp.json()["reviewed_by"] == str(supervisor.id)

    login(client, "officer")
    resp = client.put(f"/api/patrol-reports/{report['id']}", json={"summary": "Edited"})
    assert resp.status_code == 422


def test_officer_cannot_edit_someone_elses_report(client, officer, make_user, sent_mail):
    make_user("other")
    login(client, "other")
    report = client.post("/api/patrol-reports", json={"summary": "Mine"}).json()
    login(client, "officer")
    assert client.put(f"/api/patrol-reports/{report['id']}", json={"summary": "Yours now"}).status_code == 403


def test_staff_lifecycle(as_admin, db, sent_mail):
    resp = as_admin.post("/api/staff", json={
        "username": "Kai.Guard", "email": "kai@guardhub.io", "password": "longenough", "role": "security_officer",
    })
    assert resp.status_code == 201
    staff = resp.json()
    assert staff["username"] == "kai.guard"
    assert "password_hash" not in staff
    assert sent_mail[0]["subject"] == "New User Registered"

    dup = as_admin.post("/api/staff", json={
        "username": "KAI.GUARD", "email": "other@guardhub.io", "password": "longenough",
    })
    assert dup.status_code == 422

    short = as_admin.post("/api/staff", json={
        "username": "shorty", "email": "shorty@guardhub.io", "password": "short",
    })
    assert short.status_code == 422

    resp = as_admin.patch(f"/api/staff/{staff['id']}/status", json={"status": "on_leave"})
    assert resp.json()["status"] == "on_leave"
    active = [s["username"] for s in as_admin.get("/api/staff/active").json()]
    assert "kai.guard" not in active
    assert "admin" in active


def test_admin_cannot_deactivate_self(as_admin, admin):
    assert as_admin.delete(f"/api/staff/{admin.id}").status_code == 422


def test_financial_summary_counts_payments_as_revenue(client, db, supervisor):
    today = date.today()
    db.add_all([
        FinancialRecord(record_type="invoice", amount=500, description="Invoice", transaction_date=today),
        FinancialRecord(record_type="payment", amount=300, description="Payment", transaction_date=today),
        FinancialRecord(record_type="payment", amount=200, description="Old payment", transaction_date=date(2000, 1, 1)),
        FinancialRecord(record_type="expense", amount=120.5, description="Fuel", transaction_date=date(2000, 1, 1)),
    ])
    db.commit()
    login(client, "sup")
    summary = client.get("/api/financial/summary").json()
    assert summary["total_revenue"] == 500
    assert summary["total_expenses"] == 120.5
    assert summary["net_profit"] == 379.5
    assert summary["monthly_expenses"] == 0


def test_dashboard_and_activity_feed(as_admin, sent_mail):
    as_admin.post("/api/incidents", json={"incident_type": "alarm", "description": "Test"})
    stats = as_admin.get("/api/dashboard/stats").json()
    assert stats["total_incidents"] == 1
    assert stats["staff_on_duty"] == 1
    feed = as_admin.get("/api/activities", params={"limit": 5}).json()
    assert feed[0]["activity_type"] == "incident"


def test_evidence_must_attach_to_existing_entity(as_officer, sent_mail):
    inc = as_officer.post("/api/incidents", json={"incident_type": "theft", "description": "Bike taken"}).json()
    resp = as_officer.post("/api/evidence", json={
        "entity_id": inc["id"], "file_name": "cam1.jpg", "file_url": "https://files.example/cam1.jpg",
    })
    assert resp.status_code == 201
    files = as_officer.get(f"/api/files/incident/{inc['id']}").json()
    assert [f["file_name"] for f in files] == ["cam1.jpg"]

    resp = as_officer.post("/api/evidence", json={
        "entity_id": "00000000-0000-0000-0000-000000000000", "file_name": "x.jpg", "file_url": "https://x",
    })
    assert resp.status_code == 422


def test_law_search(as_admin):
    as_admin.post("/api/law", json={"title": "Burglary in the first degree", "category": "property", "code": "HRS 708-810"})
    as_admin.post("/api/law", json={"title": "Harassment", "category": "person", "code": "HRS 711-1106"})
    found = as_admin.get("/api/law", params={"search": "burglary"}).json()
    assert [r["code"] for r in found] == ["HRS 708-810"]
    assert len(as_admin.get("/api/law", params={"category": "person"}).json()) == 1


def test_today_filter_respects_offsets(as_admin):
    now = datetime.now(timezone.utc)
    in_tokyo = now.astimezone(timezone(timedelta(hours=9)))
    as_admin.post("/api/appointments", json={"title": "Site walk", "scheduled_date": in_tokyo.isoformat()})
    as_admin.post("/api/appointments", json={
        "title": "Next week", "scheduled_date": (now + timedelta(days=7)).isoformat(),
    })
    titles = [a["title"] for a in as_admin.get("/api/appointments", params={"today": "true"}).json()]
    assert titles == ["Site walk"]

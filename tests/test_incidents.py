import uuid
from datetime import datetime, timezone

from guardhub.models.models import Activity, Incident, Property


def _property(db, name="Harbor Tower"):
    p = Property(name=name, address="1 Harbor Way")
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


def test_dangling_property_is_rejected(as_officer, db, sent_mail):
    resp = as_officer.post("/api/incidents", json={
        "incident_type": "trespass",
        "description": "Person in restricted area",
        "property_id": str(uuid.uuid4()),
    })
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail[0]["loc"] == ["body", "property_id"]
    assert db.query(Incident).count() == 0
    assert sent_mail == []


def test_create_incident_reports_as_current_user_and_notifies(as_officer, db, officer, sent_mail):
    prop = _property(db)
    resp = as_officer.post("/api/incidents", json={
        "incident_type": "vandalism",
        "description": "Graffiti on <b>north</b> wall",
        "severity": "high",
        "property_id": str(prop.id),
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["reported_by"] == str(officer.id)
    assert body["status"] == "open"
    assert body["occurred_at"]

    assert len(sent_mail) == 1
    mail = sent_mail[0]
    assert mail["subject"] == "New Incident Reported"
    assert "Harbor Tower" in mail["html"]
    assert "&lt;b&gt;north&lt;/b&gt;" in mail["html"]

    activity = db.query(Activity).filter(Activity.entity_id == body["id"]).one()
    assert activity.user_id == officer.id
    assert activity.activity_type == "incident"


def test_mail_failure_does_not_fail_the_request(as_officer, monkeypatch):
    from guardhub.services import mailer

    def boom(to, subject, html):
        raise RuntimeError("smtp down")

    monkeypatch.setattr(mailer, "send_email", boom)
    resp = as_officer.post("/api/incidents", json={"incident_type": "alarm", "description": "False alarm"})
    assert resp.status_code == 201


def test_resolving_stamps_resolved_at(as_officer, sent_mail):
    created = as_officer.post("/api/incidents", json={"incident_type": "alarm", "description": "Door alarm"}).json()
    assert created["resolved_at"] is None
    resp = as_officer.put(f"/api/incidents/{created['id']}", json={"status": "resolved"})
    assert resp.status_code == 200
    assert resp.json()["resolved_at"] is not None


def test_blank_description_is_rejected(as_officer, sent_mail):
    resp = as_officer.post("/api/incidents", json={"incident_type": "alarm", "description": "   "})
    assert resp.status_code == 422


def test_recent_filter_and_404(as_officer, sent_mail):
    as_officer.post("/api/incidents", json={"incident_type": "alarm", "description": "Gate alarm"})
    assert len(as_officer.get("/api/incidents", params={"recent": "true"}).json()) == 1
    assert as_officer.get(f"/api/incidents/{uuid.uuid4()}").status_code == 404


def _instant(value):
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def test_offset_timestamps_keep_their_instant(as_officer, db, sent_mail):
    created = as_officer.post("/api/incidents", json={
        "incident_type": "alarm",
        "description": "Loading dock alarm",
        "occurred_at": "2024-03-01T10:00:00+05:00",
    }).json()
    expected = datetime(2024, 3, 1, 5, 0, tzinfo=timezone.utc)

    fetched = as_officer.get(f"/api/incidents/{created['id']}").json()
    assert _instant(fetched["occurred_at"]) == expected
    assert db.get(Incident, uuid.UUID(created["id"])).occurred_at == expected

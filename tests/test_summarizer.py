import json

import httpx
import pytest

from guardhub.main import app
from guardhub.schemas.ai import CrimeIncidentInput, IncidentAnalysisRequest, PatrolSummaryRequest
from guardhub.services.summarizer import AISummarizer, get_summarizer


INCIDENT = IncidentAnalysisRequest(
    incident_type="burglary", description="Forced entry at rear door", location="Warehouse 4", severity="high",
)


def _reply(content):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})
    return handler


def _summarizer(handler):
    return AISummarizer(api_key="test-key", base_url="https://ai.test/v1", transport=httpx.MockTransport(handler))


def test_valid_reply_is_used():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return _reply(json.dumps({
            "risk_assessment": "Likely repeat offender",
            "recommended_actions": ["Add camera", "Check locks"],
            "priority": "critical",
            "similar_patterns": ["Night-time entries"],
        }))(request)

    result = _summarizer(handler).analyze_incident(INCIDENT)
    assert result.source == "ai"
    assert result.priority == "critical"
    assert seen["url"] == "https://ai.test/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert "Warehouse 4" in seen["body"]["messages"][1]["content"]


def test_fenced_json_is_accepted():
    content = "```json\n" + json.dumps({"summary": "Calm", "insights": ["ok"], "recommendations": ["keep going"]}) + "\n```"
    result = _summarizer(_reply(content)).summarize_patrol(PatrolSummaryRequest(location="Lobby"))
    assert result.source == "ai"
    assert result.summary == "Calm"


@pytest.mark.parametrize("handler", [
    _reply("this is not json"),
    _reply(json.dumps({"risk_assessment": "x", "recommended_actions": [], "priority": "high"})),
    _reply(json.dumps({"risk_assessment": "x", "recommended_actions": ["a"], "priority": "urgent"})),
    _reply(""),
    _reply([{"type": "text", "text": "{}"}]),
    _reply({"risk_assessment": "not wrapped in a string"}),
    _reply(42),
    lambda request: httpx.Response(503, text="overloaded"),
])
def test_unusable_reply_falls_back_with_same_shape(handler):
    result = _summarizer(handler).analyze_incident(INCIDENT)
    assert result.source == "fallback"
    assert result.priority == "high"
    assert result.recommended_actions
    assert "Warehouse 4" in result.risk_assessment


def test_transport_error_falls_back():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    result = _summarizer(handler).summarize_patrol(
        PatrolSummaryRequest(location="Pier 9", checkpoints=["A", "B"], duration=2.5, incidents=1)
    )
    assert result.source == "fallback"
    assert "Pier 9" in result.summary
    assert "2 checkpoints" in result.summary
    assert any("1 incident" in i for i in result.insights)


def test_missing_key_falls_back_without_calling_out():
    def handler(request):
        raise AssertionError("should not be called")

    s = AISummarizer(api_key="", transport=httpx.MockTransport(handler))
    assert s.analyze_incident(INCIDENT).source == "fallback"


def test_crime_pattern_fallback_ranks_hotspots():
    incidents = [
        CrimeIncidentInput(incident_type="theft", location="Pier 9"),
        CrimeIncidentInput(incident_type="theft", location="Lot B"),
        CrimeIncidentInput(incident_type="vandalism", location="Lot B"),
    ]
    result = _summarizer(_reply("nope")).analyze_crime_patterns(incidents)
    assert result.source == "fallback"
    assert result.hotspots == ["Lot B", "Pier 9"]


def test_ai_routes_use_injected_summarizer(as_officer):
    app.dependency_overrides[get_summarizer] = lambda: _summarizer(_reply("garbage"))
    resp = as_officer.post("/api/ai/incident-analysis", json=INCIDENT.model_dump())
    assert resp.status_code == 200
    assert resp.json()["source"] == "fallback"
    resp = as_officer.post("/api/ai/crime-patterns", json={"incidents": []})
    assert resp.json()["patterns"] == ["Pattern analysis requires more data"]


def test_ai_routes_require_login(client):
    assert client.post("/api/ai/patrol-summary", json={"location": "Lobby"}).status_code == 401


def test_content_parts_reply_is_a_fallback_not_an_error(as_officer):
    app.dependency_overrides[get_summarizer] = lambda: _summarizer(_reply([{"type": "text", "text": "{}"}]))
    resp = as_officer.post("/api/ai/patrol-summary", json={"location": "Lobby"})
    assert resp.status_code == 200
    assert resp.json()["source"] == "fallback"

"""
AI incident/patrol summarizer.

Talks to an OpenAI-compatible chat completions API. Replies are validated
against the response models; anything unusable (network error, missing key,
non-JSON, wrong shape) degrades to a deterministic templated answer of the
same shape.
"""
import json
import re
from typing import Dict, List, Optional, Type, TypeVar

import httpx
import pydantic
import structlog

from ..config import settings
from ..errors import UpstreamUnavailable
from ..schemas.ai import (
    CrimeIncidentInput,
    CrimePatternAnalysis,
    IncidentAnalysis,
    IncidentAnalysisRequest,
    PatrolSummary,
    PatrolSummaryRequest,
)


log = structlog.get_logger()

T = TypeVar("T", bound=pydantic.BaseModel)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

_SEVERITY_ACTIONS = {
    "low": ["Log the incident for trend review", "Continue routine patrols"],
    "medium": ["Conduct thorough investigation", "Review security protocols", "Increase patrol frequency if needed"],
    "high": ["Notify the site supervisor", "Increase patrol frequency at this location", "Review camera footage and access logs"],
    "critical": ["Contact law enforcement immediately", "Dispatch additional officers", "Notify the client contact", "Secure and preserve evidence"],
}


class AISummarizer:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.ai_api_key
        self.base_url = (base_url or settings.ai_base_url).rstrip("/")
        self.model = model or settings.ai_model
        self.timeout = timeout or settings.ai_timeout
        self._transport = transport

    def _complete(self, system: str, prompt: str, max_tokens: int) -> str:
        if not self.api_key:
            raise UpstreamUnavailable("AI API key not configured")
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.3,
            "max_tokens": max_tokens,
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(f"{self.base_url}/chat/completions", json=body, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailable(f"AI request failed: {e}") from e
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise UpstreamUnavailable("No response from AI service")
        if not isinstance(content, str):
            # some providers return a list of content parts
            raise UpstreamUnavailable(f"Unexpected AI content type: {type(content).__name__}")
        return content

    def _ask(self, model: Type[T], system: str, prompt: str, max_tokens: int) -> Optional[T]:
        """Return a validated reply, or None when the caller should fall back."""
        try:
            raw = self._complete(system, prompt, max_tokens)
        except UpstreamUnavailable as e:
            log.warning("ai_unavailable", model=model.__name__, error=str(e))
            return None
        try:
            parsed = json.loads(_FENCE_RE.sub("", raw.strip()))
            if isinstance(parsed, dict):
                parsed.pop("source", None)
            return model.model_validate(parsed)
        except (ValueError, pydantic.ValidationError) as e:
            log.warning("ai_reply_invalid", model=model.__name__, error=str(e)[:200])
            return None

    def analyze_incident(self, req: IncidentAnalysisRequest) -> IncidentAnalysis:
        prompt = (
            "Analyze this security incident:\n"
            f"Type: {req.incident_type}\n"
            f"Description: {req.description}\n"
            f"Location: {req.location or 'Unknown'}\n"
            f"Severity: {req.severity}\n\n"
            "Reply with a JSON object with keys:\n"
            "- risk_assessment: string (brief risk analysis)\n"
            "- recommended_actions: string[] (3-5 actionable recommendations)\n"
            "- priority: one of low|medium|high|critical\n"
            "- similar_patterns: string[] (patterns to watch for)"
        )
        result = self._ask(
            IncidentAnalysis,
            "You are a security analyst that assesses incident risk. Reply only with JSON.",
            prompt,
            1000,
        )
        return result or incident_fallback(req)

    def summarize_patrol(self, req: PatrolSummaryRequest) -> PatrolSummary:
        prompt = (
            "Generate a patrol summary for this data:\n"
            f"Location: {req.location}\n"
            f"Duration: {req.duration} hours\n"
            f"Incidents reported: {req.incidents}\n"
            f"Checkpoints: {', '.join(req.checkpoints) or 'none recorded'}\n"
            f"Notes: {req.notes}\n\n"
            "Reply with a JSON object with keys:\n"
            "- summary: string (professional patrol summary)\n"
            "- insights: string[] (key observations)\n"
            "- recommendations: string[] (operational recommendations)"
        )
        result = self._ask(
            PatrolSummary,
            "You are a security operations assistant that writes patrol summaries. Reply only with JSON.",
            prompt,
            800,
        )
        return result or patrol_fallback(req)

    def analyze_crime_patterns(self, incidents: List[CrimeIncidentInput]) -> CrimePatternAnalysis:
        if not incidents:
            return crime_patterns_fallback(incidents)
        lines = "\n".join(
            f"{i.incident_type} at {i.location or 'unknown'} on {i.time or 'unknown'} ({i.severity})"
            for i in incidents
        )
        prompt = (
            f"Analyze these recent incidents for patterns:\n{lines}\n\n"
            "Reply with a JSON object with keys:\n"
            "- patterns: string[] (identified crime patterns)\n"
            "- hotspots: string[] (high-activity locations)\n"
            "- recommendations: string[] (strategic recommendations)"
        )
        result = self._ask(
            CrimePatternAnalysis,
            "You are a crime analyst that finds trends in incident data. Reply only with JSON.",
            prompt,
            1000,
        )
        return result or crime_patterns_fallback(incidents)


def incident_fallback(req: IncidentAnalysisRequest) -> IncidentAnalysis:
    location = req.location or "an unspecified location"
    return IncidentAnalysis(
        risk_assessment=(
            f"{req.severity.capitalize()} severity {req.incident_type} reported at {location}. "
            "Standard risk assessment applied; manual review recommended."
        ),
        recommended_actions=list(_SEVERITY_ACTIONS[req.severity]),
        priority=req.severity,
        similar_patterns=["Monitor area for similar incidents"],
        source="fallback",
    )


def patrol_fallback(req: PatrolSummaryRequest) -> PatrolSummary:
    summary = (
        f"Patrol completed at {req.location} covering {len(req.checkpoints)} checkpoints "
        f"over {req.duration:g} hours."
    )
    insights = ["All checkpoints covered"] if req.checkpoints else ["No checkpoints were recorded"]
    if req.incidents:
        insights.append(f"{req.incidents} incident(s) reported during the patrol")
    else:
        insights.append("No incidents reported during the patrol")
    return PatrolSummary(
        summary=summary,
        insights=insights,
        recommendations=["Continue regular patrol schedule", "Monitor area for changes"],
        source="fallback",
    )


def crime_patterns_fallback(incidents: List[CrimeIncidentInput]) -> CrimePatternAnalysis:
    counts: Dict[str, int] = {}
    for i in incidents:
        if i.location:
            counts[i.location] = counts.get(i.location, 0) + 1
    # most incidents first, ties in first-seen order
    hotspots = sorted(counts, key=lambda loc: -counts[loc])
    if incidents:
        patterns = ["Mixed incident types across locations"]
    else:
        patterns = ["Pattern analysis requires more data"]
    return CrimePatternAnalysis(
        patterns=patterns,
        hotspots=hotspots,
        recommendations=["Increase patrol presence", "Continue data collection and monitor trends"],
        source="fallback",
    )


def get_summarizer() -> AISummarizer:
    """FastAPI dependency; tests override it with a summarizer on a mock transport."""
    return AISummarizer()

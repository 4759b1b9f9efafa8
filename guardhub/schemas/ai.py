from typing import List, Literal

from pydantic import BaseModel, Field

from .crm import Severity


Source = Literal["ai", "fallback"]


class IncidentAnalysisRequest(BaseModel):
    incident_type: str = Field(min_length=1)
    description: str = Field(min_length=1)
    location: str = ""
    severity: Severity = "medium"


class IncidentAnalysis(BaseModel):
    risk_assessment: str = Field(min_length=1)
    recommended_actions: List[str] = Field(min_length=1)
    priority: Severity
    similar_patterns: List[str] = []
    source: Source = "ai"


class PatrolSummaryRequest(BaseModel):
    location: str = Field(min_length=1)
    checkpoints: List[str] = []
    duration: float = Field(default=0, ge=0, description="hours")
    incidents: int = Field(default=0, ge=0)
    notes: str = ""


class PatrolSummary(BaseModel):
    summary: str = Field(min_length=1)
    insights: List[str] = Field(min_length=1)
    recommendations: List[str] = Field(min_length=1)
    source: Source = "ai"


class CrimeIncidentInput(BaseModel):
    incident_type: str
    location: str = ""
    time: str = ""
    severity: str = "medium"


class CrimePatternRequest(BaseModel):
    incidents: List[CrimeIncidentInput] = []


class CrimePatternAnalysis(BaseModel):
    patterns: List[str] = Field(min_length=1)
    hotspots: List[str] = []
    recommendations: List[str] = Field(min_length=1)
    source: Source = "ai"

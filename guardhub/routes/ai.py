from fastapi import APIRouter, Depends

from ..auth.security import require_capability
from ..schemas.ai import (
    CrimePatternAnalysis,
    CrimePatternRequest,
    IncidentAnalysis,
    IncidentAnalysisRequest,
    PatrolSummary,
    PatrolSummaryRequest,
)
from ..services.summarizer import AISummarizer, get_summarizer


router = APIRouter(prefix="/api/ai", tags=["ai"], dependencies=[Depends(require_capability("ai:use"))])


@router.post("/incident-analysis", response_model=IncidentAnalysis)
def incident_analysis(req: IncidentAnalysisRequest, summarizer: AISummarizer = Depends(get_summarizer)):
    return summarizer.analyze_incident(req)


@router.post("/patrol-summary", response_model=PatrolSummary)
def patrol_summary(req: PatrolSummaryRequest, summarizer: AISummarizer = Depends(get_summarizer)):
    return summarizer.summarize_patrol(req)


@router.post("/crime-patterns", response_model=CrimePatternAnalysis)
def crime_patterns(req: CrimePatternRequest, summarizer: AISummarizer = Depends(get_summarizer)):
    return summarizer.analyze_crime_patterns(req.incidents)

"""Models package exports."""

from src.models.analysis import (
    AnalysisResult,
    Anomaly,
    OutcomeScore,
    PillarScores,
    SectionResult,
    Violation,
)
from src.models.request import AnalyzeRequest
from src.models.response import (
    AnalyzeResponse,
    ConfigVerification,
    ErrorResponse,
    GatewayProbe,
)
from src.models.session import SessionListResponse, SessionRecord, SessionSummary
from src.models.transcript import TranscriptTurn, TurnRole

__all__ = [
    "AnalysisResult",
    "AnalyzeRequest",
    "AnalyzeResponse",
    "Anomaly",
    "ConfigVerification",
    "ErrorResponse",
    "GatewayProbe",
    "OutcomeScore",
    "PillarScores",
    "SectionResult",
    "SessionListResponse",
    "SessionRecord",
    "SessionSummary",
    "TranscriptTurn",
    "TurnRole",
    "Violation",
]

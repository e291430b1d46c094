"""Persisted observability session models."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from src.models.analysis import AnalysisResult


class SessionSummary(BaseModel):
    """Row shown in the recent-sessions list."""

    id: str
    created_at: datetime
    overall_score: Optional[int] = None
    risk_level: Optional[str] = None
    status: Optional[str] = None
    external_call_id: Optional[str] = None


class SessionRecord(SessionSummary):
    """Full stored session: analysis plus the transcript as originally supplied."""

    updated_at: Optional[datetime] = None
    analysis: Optional[AnalysisResult] = None
    transcript: Any = None


class SessionListResponse(BaseModel):
    """Recent sessions, newest first."""

    items: list[SessionSummary]
    limit: int

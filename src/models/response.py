"""Response models for the observability API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.models.analysis import AnalysisResult


class AnalyzeResponse(BaseModel):
    """Successful analysis response."""

    success: bool = True
    analysis: AnalysisResult


class ErrorResponse(BaseModel):
    """Error body returned by every failing endpoint.

    Attributes:
        error: What happened (safe to show to the caller)
        detail: Optional validation detail
        correlation_id: Request tracking ID, when known
    """

    error: str
    detail: Optional[str] = None
    correlation_id: Optional[str] = None


class GatewayProbe(BaseModel):
    """Result of probing the LLM gateway."""

    reachable: bool = False
    latency_ms: int = Field(default=0, ge=0)


class ConfigVerification(BaseModel):
    """Which secrets are configured and whether the LLM gateway answers."""

    secrets: dict[str, bool]
    api_test: GatewayProbe
    verified_at: datetime

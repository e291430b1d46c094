"""Observability analysis and session API endpoints."""

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import JSONResponse
import structlog

from src.config import get_settings
from src.models.request import AnalyzeRequest
from src.models.response import AnalyzeResponse, ConfigVerification, ErrorResponse
from src.models.session import SessionListResponse, SessionRecord
from src.services.config_check_service import ConfigCheckService
from src.services.errors import InputError, UpstreamError, UpstreamTimeoutError
from src.services.observability_service import ObservabilityService
from src.services.session_service import SessionService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/observability", tags=["Observability"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

RATE_LIMITED_MESSAGE = "Rate limit exceeded, please try again later"
STORAGE_UNAVAILABLE_MESSAGE = "Session storage unavailable"


def get_observability_service() -> ObservabilityService:
    """Get observability service instance (lazy loaded)."""
    return ObservabilityService()


def get_session_service() -> SessionService:
    """Get session service instance."""
    return SessionService()


def get_config_check_service() -> ConfigCheckService:
    """Get config check service instance."""
    return ConfigCheckService()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(exclude_none=True),
        headers=CORS_HEADERS,
    )


@router.options("/analyze")
async def analyze_preflight() -> Response:
    """Answer bare OPTIONS requests with an empty body and permissive CORS headers."""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/analyze")
async def analyze(request: AnalyzeRequest, http_request: Request) -> JSONResponse:
    """Score a call transcript against the rubric.

    Returns 200 with {success, analysis} for every analyzable transcript,
    including degraded results when the model output was unusable. Returns
    400 for a missing or empty transcript, 429 when the gateway rate-limits,
    and 500 for other gateway or unexpected failures. Upstream bodies are
    logged, never returned.
    """
    logger.info(
        "request_received",
        method=http_request.method,
        path=str(http_request.url.path),
        has_script=request.script_json is not None,
        has_session=request.session_id is not None,
    )

    service = get_observability_service()
    try:
        analysis = await service.analyze(
            transcript=request.transcript,
            script=request.script_json,
            call_id=request.call_id,
            session_id=request.session_id,
        )
    except InputError as e:
        logger.warning("analysis_rejected", reason=str(e))
        return _error(400, str(e))
    except UpstreamTimeoutError:
        return _error(500, "AI analysis timed out")
    except UpstreamError as e:
        if e.status == 429:
            return _error(429, RATE_LIMITED_MESSAGE)
        if e.status is None:
            return _error(500, "AI analysis failed")
        return _error(500, f"AI analysis failed: {e.status}")
    except Exception as e:
        logger.error(
            "analysis_error",
            error=str(e),
            error_type=type(e).__name__,
        )
        return _error(500, str(e) or "Unknown error")

    body = AnalyzeResponse(analysis=analysis)
    return JSONResponse(
        content=body.model_dump(mode="json", by_alias=True),
        headers=CORS_HEADERS,
    )


@router.get("/sessions", response_model=None)
async def list_sessions(
    limit: int | None = Query(default=None, ge=1, le=100),
) -> SessionListResponse | JSONResponse:
    """Recent analysis sessions, newest first."""
    limit = limit or get_settings().recent_sessions_limit
    try:
        items = await get_session_service().list_recent(limit=limit)
    except RuntimeError as e:
        logger.error("session_storage_unavailable", error=str(e))
        return _error(503, STORAGE_UNAVAILABLE_MESSAGE)
    return SessionListResponse(items=items, limit=limit)


@router.get("/sessions/{session_id}", response_model=None)
async def get_session(session_id: str) -> JSONResponse:
    """Stored analysis and transcript for one session."""
    try:
        record: SessionRecord | None = await get_session_service().get(session_id)
    except RuntimeError as e:
        logger.error("session_storage_unavailable", error=str(e))
        return _error(503, STORAGE_UNAVAILABLE_MESSAGE)
    if record is None:
        return _error(404, "Session not found")
    return JSONResponse(content=record.model_dump(mode="json", by_alias=True))


@router.get("/config", response_model=ConfigVerification)
async def verify_config() -> ConfigVerification:
    """Report configured secrets and LLM gateway reachability."""
    result = await get_config_check_service().verify()
    logger.info(
        "config_verified",
        gateway_reachable=result.api_test.reachable,
        latency_ms=result.api_test.latency_ms,
    )
    return result

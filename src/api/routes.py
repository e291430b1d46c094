"""Service-level routes."""

from datetime import datetime, timezone

from fastapi import APIRouter

from src.models.rubric import RUBRIC_VERSION

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Status, timestamp in ISO8601 format, rubric version and database state
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "rubric_version": RUBRIC_VERSION,
    }

    # Analysis works without storage, so an unhealthy database does not
    # make the service unhealthy
    try:
        from src.database import health_check as db_health_check
        db_healthy = await db_health_check()
        health_status["database"] = "healthy" if db_healthy else "unhealthy"
    except Exception:
        health_status["database"] = "unavailable"

    return health_status

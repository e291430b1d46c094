"""API package exports."""

from src.api.middleware import CorrelationIdMiddleware
from src.api.observability import router as observability_router
from src.api.routes import router

__all__ = ["router", "observability_router", "CorrelationIdMiddleware"]

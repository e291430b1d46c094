"""Services package exports."""

from src.services.logging_service import configure_logging, get_logger
from src.services.observability_service import ObservabilityService
from src.services.result_validator import ResultValidator
from src.services.transcript_service import normalize_transcript

__all__ = [
    "ObservabilityService",
    "ResultValidator",
    "configure_logging",
    "get_logger",
    "normalize_transcript",
]

"""Call-quality observability pipeline.

normalize -> build prompt -> invoke LLM -> coerce result -> persist.
The only suspension points are the LLM call and the optional session
write. Nothing here is shared between concurrent analyses.
"""

import time
from typing import Optional

import structlog

from src.models.analysis import AnalysisResult
from src.services.llm_service import LLMService
from src.services.logging_service import bind_analysis_context, log_analysis_complete
from src.services.prompt_service import AnalysisPromptBuilder, ScriptDefinition
from src.services.result_validator import ResultValidator
from src.services.session_service import SessionService
from src.services.transcript_service import RawTranscript, normalize_transcript

logger = structlog.get_logger(__name__)


class ObservabilityService:
    """Runs one transcript analysis end to end."""

    def __init__(
        self,
        prompt_builder: Optional[AnalysisPromptBuilder] = None,
        llm_service: Optional[LLMService] = None,
        validator: Optional[ResultValidator] = None,
        session_service: Optional[SessionService] = None,
    ):
        self.prompt_builder = prompt_builder or AnalysisPromptBuilder()
        self.llm_service = llm_service or LLMService()
        self.validator = validator or ResultValidator()
        self.session_service = session_service or SessionService()

    async def analyze(
        self,
        transcript: RawTranscript,
        script: Optional[ScriptDefinition] = None,
        call_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> AnalysisResult:
        """Analyze a transcript and, if session_id is given, store the result.

        Args:
            transcript: Raw transcript in any supported shape
            script: Optional agent script used as scoring context
            call_id: External call id, stored with the session
            session_id: Session key for the idempotent upsert

        Returns:
            A complete AnalysisResult. Storage failures do not affect it.

        Raises:
            EmptyTranscriptError: Nothing to analyze (raised before any LLM call)
            InvalidTranscriptError: A transcript entry has an unsupported shape
            UpstreamError: The LLM gateway failed or timed out
        """
        start_time = time.perf_counter()
        bind_analysis_context(session_id=session_id, call_id=call_id)

        turns = normalize_transcript(transcript)
        logger.info(
            "analysis_started",
            turn_count=len(turns),
            has_script=script is not None,
        )

        payload = self.prompt_builder.build(turns, script)
        raw_text = await self.llm_service.invoke(payload)
        result = self.validator.coerce(raw_text)

        persisted = await self.session_service.persist(
            session_id=session_id,
            transcript=transcript,
            result=result,
            call_id=call_id,
        )

        log_analysis_complete(
            logger,
            turn_count=len(turns),
            overall_score=result.overall_score,
            risk_level=result.risk_level.value,
            degraded=result.is_degraded,
            persisted=persisted,
            duration_ms=int((time.perf_counter() - start_time) * 1000),
        )
        return result


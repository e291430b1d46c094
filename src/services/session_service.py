"""Observability session persistence (upsert keyed by session id)."""

import json
from typing import Any, Optional

import structlog

from src.database import get_pool
from src.models.analysis import AnalysisResult
from src.models.session import SessionRecord, SessionSummary

logger = structlog.get_logger(__name__)

COMPLETED_STATUS = "completed"

# One statement writes the nested result and its denormalized pillar
# columns, so the two never diverge. Concurrent writers: last one wins.
UPSERT_SESSION_SQL = """
    INSERT INTO observability_sessions (
        id, transcript, observability_result,
        reliability_score, latency_score, accuracy_score,
        adherence_score, outcome_score, overall_score,
        anomalies_detected, violations, risk_level,
        status, external_call_id, created_at, updated_at
    )
    VALUES (
        $1, $2::jsonb, $3::jsonb,
        $4, $5, $6,
        $7, $8, $9,
        $10::jsonb, $11::jsonb, $12,
        $13, $14, NOW(), NOW()
    )
    ON CONFLICT (id) DO UPDATE SET
        transcript = EXCLUDED.transcript,
        observability_result = EXCLUDED.observability_result,
        reliability_score = EXCLUDED.reliability_score,
        latency_score = EXCLUDED.latency_score,
        accuracy_score = EXCLUDED.accuracy_score,
        adherence_score = EXCLUDED.adherence_score,
        outcome_score = EXCLUDED.outcome_score,
        overall_score = EXCLUDED.overall_score,
        anomalies_detected = EXCLUDED.anomalies_detected,
        violations = EXCLUDED.violations,
        risk_level = EXCLUDED.risk_level,
        status = EXCLUDED.status,
        external_call_id = EXCLUDED.external_call_id,
        updated_at = NOW()
"""


def _load_json(value: Any) -> Any:
    """asyncpg returns jsonb columns as strings unless a codec is set."""
    if isinstance(value, str):
        return json.loads(value)
    return value


class SessionService:
    """Best-effort storage of analysis results per session."""

    async def persist(
        self,
        session_id: Optional[str],
        transcript: Any,
        result: AnalysisResult,
        call_id: Optional[str] = None,
    ) -> bool:
        """Upsert the analysis under session_id.

        Args:
            session_id: Session key; None means a stateless call (no-op)
            transcript: Raw transcript exactly as the caller supplied it
            result: Coerced analysis result
            call_id: External call id, stored as external_call_id

        Returns:
            True if the row was written, False if skipped or the write failed.
            Failures are logged, never raised.
        """
        if session_id is None:
            return False

        payload = result.to_payload()
        pillars = payload["pillars"]

        try:
            pool = await get_pool()
            async with pool.acquire() as conn:
                await conn.execute(
                    UPSERT_SESSION_SQL,
                    session_id,
                    json.dumps(transcript),
                    json.dumps(payload),
                    pillars["reliability"],
                    pillars["latency"],
                    pillars["accuracy"],
                    pillars["adherence"],
                    pillars["outcome"]["score"],
                    payload["overallScore"],
                    json.dumps(payload["anomalies"]),
                    json.dumps(payload["violations"]),
                    payload["riskLevel"],
                    COMPLETED_STATUS,
                    call_id,
                )
        except Exception as e:
            logger.error(
                "session_persist_failed",
                session_id=session_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        logger.info(
            "session_persisted",
            session_id=session_id,
            overall_score=payload["overallScore"],
            risk_level=payload["riskLevel"],
        )
        return True

    async def list_recent(self, limit: int = 20) -> list[SessionSummary]:
        """Most recent sessions, newest first."""
        pool = await get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, created_at, overall_score, risk_level, status, external_call_id
                FROM observability_sessions
                ORDER BY created_at DESC
                LIMIT $1
                """,
                limit,
            )

        return [
            SessionSummary(
                id=row["id"],
                created_at=row["created_at"],
                overall_score=row["overall_score"],
                risk_level=row["risk_level"],
                status=row["status"],
                external_call_id=row["external_call_id"],
            )
            for row in rows
        ]

    async def get(self, session_id: str) -> Optional[SessionRecord]:
        """Load one stored session, or None if it does not exist."""
        pool = await get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, created_at, updated_at, overall_score, risk_level, status,
                       external_call_id, observability_result, transcript
                FROM observability_sessions
                WHERE id = $1
                """,
                session_id,
            )

        if row is None:
            return None

        stored_result = _load_json(row["observability_result"])
        return SessionRecord(
            id=row["id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            overall_score=row["overall_score"],
            risk_level=row["risk_level"],
            status=row["status"],
            external_call_id=row["external_call_id"],
            analysis=AnalysisResult.model_validate(stored_result) if stored_result else None,
            transcript=_load_json(row["transcript"]),
        )

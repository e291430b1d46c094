"""Unit tests for session persistence."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from src.models.rubric import ComplianceThresholds
from src.services.result_validator import ResultValidator, build_fallback_result
from src.services.session_service import COMPLETED_STATUS, UPSERT_SESSION_SQL, SessionService


@pytest.fixture
def result(model_output_text):
    return ResultValidator(thresholds=ComplianceThresholds()).coerce(model_output_text)


def _stored_row(session_id, result, transcript):
    now = datetime.now(timezone.utc)
    return {
        "id": session_id,
        "created_at": now,
        "updated_at": now,
        "overall_score": result.overall_score,
        "risk_level": result.risk_level.value,
        "status": COMPLETED_STATUS,
        "external_call_id": "call-1",
        # asyncpg hands jsonb back as text without a codec
        "observability_result": json.dumps(result.to_payload()),
        "transcript": json.dumps(transcript),
    }


class TestPersist:
    """Tests for the idempotent upsert."""

    @pytest.mark.asyncio
    async def test_no_session_id_is_a_no_op(self, result):
        with patch("src.services.session_service.get_pool", new_callable=AsyncMock) as mock_get_pool:
            persisted = await SessionService().persist(None, [{"user": "hi"}], result)

        assert persisted is False
        mock_get_pool.assert_not_called()

    @pytest.mark.asyncio
    async def test_writes_one_upsert(self, mock_database_pool, result, ringg_transcript):
        _, mock_conn = mock_database_pool

        persisted = await SessionService().persist(
            "session-1", ringg_transcript, result, call_id="call-1"
        )

        assert persisted is True
        mock_conn.execute.assert_called_once()
        args = mock_conn.execute.call_args.args
        assert args[0] == UPSERT_SESSION_SQL
        assert "ON CONFLICT (id) DO UPDATE" in args[0]
        assert args[1] == "session-1"
        assert json.loads(args[2]) == ringg_transcript
        assert args[13] == COMPLETED_STATUS
        assert args[14] == "call-1"

    @pytest.mark.asyncio
    async def test_denormalized_columns_match_nested_result(self, mock_database_pool, result):
        _, mock_conn = mock_database_pool

        await SessionService().persist("session-1", "Bot: hi", result)

        args = mock_conn.execute.call_args.args
        stored = json.loads(args[3])
        assert args[4] == stored["pillars"]["reliability"] == 90
        assert args[5] is None
        assert args[6] == stored["pillars"]["accuracy"]
        assert args[7] == stored["pillars"]["adherence"]
        assert args[8] == stored["pillars"]["outcome"]["score"]
        assert args[9] == stored["overallScore"] == 85
        assert json.loads(args[10]) == stored["anomalies"]
        assert json.loads(args[11]) == stored["violations"]
        assert args[12] == stored["riskLevel"] == "low"

    @pytest.mark.asyncio
    async def test_transcript_stored_as_supplied(self, mock_database_pool, result):
        _, mock_conn = mock_database_pool
        raw = "Bot: Hello\n\nUser:   hi  "

        await SessionService().persist("session-1", raw, result)

        assert json.loads(mock_conn.execute.call_args.args[2]) == raw

    @pytest.mark.asyncio
    async def test_repeated_writes_use_same_statement(self, mock_database_pool, result):
        _, mock_conn = mock_database_pool
        service = SessionService()
        degraded = build_fallback_result("failed")

        await service.persist("session-1", "Bot: hi", result)
        await service.persist("session-1", "Bot: hi", degraded)

        first, second = mock_conn.execute.call_args_list
        assert first.args[0] == second.args[0] == UPSERT_SESSION_SQL
        assert second.args[1] == "session-1"
        assert second.args[9] == 0
        assert second.args[12] == "high"

    @pytest.mark.asyncio
    async def test_write_failure_returns_false(self, mock_database_pool, result):
        _, mock_conn = mock_database_pool
        mock_conn.execute.side_effect = ConnectionError("connection reset")

        persisted = await SessionService().persist("session-1", "Bot: hi", result)

        assert persisted is False

    @pytest.mark.asyncio
    async def test_uninitialized_pool_returns_false(self, result):
        with patch(
            "src.services.session_service.get_pool",
            new_callable=AsyncMock,
            side_effect=RuntimeError("Database pool not initialized"),
        ):
            persisted = await SessionService().persist("session-1", "Bot: hi", result)

        assert persisted is False


class TestListRecent:
    """Tests for the recent-sessions query."""

    @pytest.mark.asyncio
    async def test_returns_summaries(self, mock_database_pool, result):
        _, mock_conn = mock_database_pool
        mock_conn.fetch.return_value = [
            _stored_row("session-2", result, "Bot: b"),
            _stored_row("session-1", result, "Bot: a"),
        ]

        sessions = await SessionService().list_recent(limit=5)

        assert [s.id for s in sessions] == ["session-2", "session-1"]
        assert sessions[0].overall_score == 85
        assert sessions[0].risk_level == "low"
        assert sessions[0].external_call_id == "call-1"
        query, limit = mock_conn.fetch.call_args.args
        assert "ORDER BY created_at DESC" in query
        assert limit == 5

    @pytest.mark.asyncio
    async def test_storage_unavailable_raises(self, result):
        with patch(
            "src.services.session_service.get_pool",
            new_callable=AsyncMock,
            side_effect=RuntimeError("Database pool not initialized"),
        ):
            with pytest.raises(RuntimeError):
                await SessionService().list_recent()


class TestGet:
    """Tests for loading one session."""

    @pytest.mark.asyncio
    async def test_round_trips_stored_result(self, mock_database_pool, result, ringg_transcript):
        _, mock_conn = mock_database_pool
        mock_conn.fetchrow.return_value = _stored_row("session-1", result, ringg_transcript)

        record = await SessionService().get("session-1")

        assert record.analysis == result
        assert record.transcript == ringg_transcript
        assert record.status == COMPLETED_STATUS
        assert mock_conn.fetchrow.call_args.args[1] == "session-1"

    @pytest.mark.asyncio
    async def test_missing_session_returns_none(self, mock_database_pool):
        _, mock_conn = mock_database_pool
        mock_conn.fetchrow.return_value = None

        assert await SessionService().get("nope") is None

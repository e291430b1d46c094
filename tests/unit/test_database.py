"""Unit tests for database pool and migrations."""

from unittest.mock import AsyncMock, patch

import pytest

from src.database import MIGRATIONS_DIR, get_pool, health_check, run_migrations


class TestGetPool:
    """Tests for pool lookup."""

    @pytest.mark.asyncio
    async def test_uninitialized_pool_raises(self):
        with patch("src.database._pool", None):
            with pytest.raises(RuntimeError, match="not initialized"):
                await get_pool()


class TestRunMigrations:
    """Tests for migration application."""

    def test_sessions_migration_shipped(self):
        sql = (MIGRATIONS_DIR / "001_observability_sessions.sql").read_text()

        assert "CREATE TABLE IF NOT EXISTS observability_sessions" in sql
        assert "observability_result JSONB" in sql

    @pytest.mark.asyncio
    async def test_applies_files_in_name_order(self, tmp_path, mock_pool, mock_conn):
        (tmp_path / "002_second.sql").write_text("SELECT 2;")
        (tmp_path / "001_first.sql").write_text("SELECT 1;")
        (tmp_path / "notes.txt").write_text("ignored")

        with patch("src.database.get_pool", new_callable=AsyncMock, return_value=mock_pool):
            applied = await run_migrations(tmp_path)

        assert applied == ["001_first.sql", "002_second.sql"]
        assert [c.args[0] for c in mock_conn.execute.call_args_list] == ["SELECT 1;", "SELECT 2;"]

    @pytest.mark.asyncio
    async def test_missing_directory_is_skipped(self, tmp_path):
        assert await run_migrations(tmp_path / "absent") == []

    @pytest.mark.asyncio
    async def test_failed_migration_raises(self, tmp_path, mock_pool, mock_conn):
        (tmp_path / "001_bad.sql").write_text("NOT SQL")
        mock_conn.execute.side_effect = Exception("syntax error")

        with patch("src.database.get_pool", new_callable=AsyncMock, return_value=mock_pool):
            with pytest.raises(Exception, match="syntax error"):
                await run_migrations(tmp_path)


class TestHealthCheck:
    """Tests for database health check."""

    @pytest.mark.asyncio
    async def test_healthy(self, mock_pool):
        with patch("src.database.get_pool", new_callable=AsyncMock, return_value=mock_pool):
            assert await health_check() is True

    @pytest.mark.asyncio
    async def test_unavailable_pool_is_unhealthy(self):
        with patch(
            "src.database.get_pool",
            new_callable=AsyncMock,
            side_effect=RuntimeError("not initialized"),
        ):
            assert await health_check() is False

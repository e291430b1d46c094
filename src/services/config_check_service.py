"""Deployment check: configured secrets and LLM gateway reachability."""

import time
from datetime import datetime, timezone
from typing import Optional

import httpx
import structlog

from src.config import Settings, get_settings
from src.models.response import ConfigVerification, GatewayProbe

logger = structlog.get_logger(__name__)

PROBE_TIMEOUT_SECONDS = 5.0


class ConfigCheckService:
    """Reports which settings are present and whether the gateway answers."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def secrets_present(self) -> dict[str, bool]:
        """Presence flags only; values are never returned."""
        return {
            "llm_api_key": bool(self.settings.llm_api_key),
            "llm_base_url": bool(self.settings.llm_base_url),
            "postgres_url": bool(self.settings.postgres_url),
        }

    async def probe_gateway(self) -> GatewayProbe:
        """GET {llm_base_url}/models and time it.

        Any response below 500 counts as reachable: a 401 still proves the
        gateway is up.
        """
        if not self.settings.llm_api_key:
            return GatewayProbe(reachable=False, latency_ms=0)

        url = f"{self.settings.llm_base_url.rstrip('/')}/models"
        start_time = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(PROBE_TIMEOUT_SECONDS)) as client:
                response = await client.get(
                    url,
                    headers={"Authorization": f"Bearer {self.settings.llm_api_key}"},
                )
        except httpx.HTTPError as e:
            logger.warning(
                "gateway_probe_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return GatewayProbe(reachable=False, latency_ms=0)

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            "gateway_probe_complete",
            status_code=response.status_code,
            latency_ms=latency_ms,
        )
        return GatewayProbe(reachable=response.status_code < 500, latency_ms=latency_ms)

    async def verify(self) -> ConfigVerification:
        """Run all checks."""
        secrets = self.secrets_present()
        api_test = await self.probe_gateway()
        return ConfigVerification(
            secrets=secrets,
            api_test=api_test,
            verified_at=datetime.now(timezone.utc),
        )

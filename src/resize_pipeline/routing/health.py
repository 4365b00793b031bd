"""Health probe for the remote resize service."""

import asyncio
import time
from typing import Optional

import aiohttp

from ..core import HealthSample, get_logger

HEALTH_ENDPOINT = "image-processor"
DEPLOYMENT_MARKER = "development environment"


class HealthProbe:
    """
    Measures reachability and round-trip latency of the remote service.

    The probe always applies ``timeout_seconds``; a request that does not
    answer in time is reported as unreachable instead of hanging the batch.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger("routing")

    @property
    def url(self) -> str:
        return f"{self.base_url}/{HEALTH_ENDPOINT}"

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def check(self) -> HealthSample:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        start = time.perf_counter()
        try:
            async with self._session.options(self.url, timeout=timeout) as response:
                latency_ms = (time.perf_counter() - start) * 1000
                status = response.status
                if status == 503 and await self._is_deployment_unavailable(response):
                    sample = HealthSample(
                        available=False,
                        latency_ms=latency_ms,
                        status=status,
                        deployment_unavailable=True,
                        error="Server functions not available in this deployment",
                    )
                else:
                    ok = 200 <= status < 300
                    sample = HealthSample(
                        available=ok,
                        latency_ms=latency_ms,
                        status=status,
                        error=None if ok else f"HTTP {status}",
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            sample = HealthSample.unreachable(str(exc) or type(exc).__name__)

        self._logger.info(
            f"Remote health: available={sample.available} latency_ms={sample.latency_ms} "
            f"status={sample.status} deployment_unavailable={sample.deployment_unavailable}"
        )
        return sample

    @staticmethod
    async def _is_deployment_unavailable(response) -> bool:
        try:
            data = await response.json(content_type=None)
        except ValueError:
            return False
        error = data.get("error", "") if isinstance(data, dict) else ""
        return DEPLOYMENT_MARKER in str(error)


class DisabledHealthProbe:
    """Used when no remote service is configured."""

    async def check(self) -> HealthSample:
        return HealthSample(
            available=False,
            deployment_unavailable=True,
            error="No remote service configured",
        )

"""Factory for wiring a fully configured resize pipeline."""

from typing import Optional

import aiohttp

from .core import PipelineSettings, get_logger
from .orchestrator import HybridResizeOrchestrator
from .processors import ChunkedExecutor, LocalBatchRunner, RemoteBatchRunner, RemoteResizeClient
from .routing import DisabledHealthProbe, FallbackCascade, HealthProbe


class PipelineFactory:
    """Factory for creating the complete resize pipeline."""

    @staticmethod
    def create_pipeline(
        settings: Optional[PipelineSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> HybridResizeOrchestrator:
        """
        Create a pipeline from ``settings`` (read from the environment when omitted).

        Without a remote URL every batch runs locally: the health probe
        reports the remote path as unavailable in this deployment.
        """
        if settings is None:
            settings = PipelineSettings.from_env()

        local_runner = LocalBatchRunner(
            executor=ChunkedExecutor(
                yield_interval=settings.local_yield_interval, name="Local resize batch"
            ),
            max_concurrency=settings.max_concurrency,
        )

        if not settings.remote_enabled:
            get_logger("factory").info("No remote service configured; local processing only")
            cascade = FallbackCascade(health_probe=DisabledHealthProbe(), local_runner=local_runner)
            return HybridResizeOrchestrator(cascade)

        probe = HealthProbe(
            settings.remote_url,
            timeout_seconds=settings.health_timeout_seconds,
            session=session,
        )
        client = RemoteResizeClient(
            settings.remote_url,
            timeout_seconds=settings.request_timeout_seconds,
            session=session,
        )
        remote_runner = RemoteBatchRunner(
            client,
            executor=ChunkedExecutor(
                yield_interval=settings.remote_yield_interval, name="Remote resize batch"
            ),
        )
        cascade = FallbackCascade(
            health_probe=probe,
            local_runner=local_runner,
            remote_runner=remote_runner,
        )
        return HybridResizeOrchestrator(cascade, closers=(probe.close, client.close))

"""Batch orchestrator: route, execute with fallback, then summarise."""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from .analytics import AnalyticsReport, summarize
from .core import (
    ExecutionPath,
    Outcome,
    ProcessingOptions,
    RoutingDecision,
    WorkItem,
    get_logger,
)
from .core.protocols import CancellationTokenProtocol, ProgressCallback
from .routing import FallbackCascade


@dataclass(frozen=True)
class BatchReport:
    """Everything a caller gets back for one batch."""

    outcomes: List[Outcome]
    decision: RoutingDecision
    path_used: ExecutionPath
    analytics: AnalyticsReport
    elapsed_ms: float
    fallback_reason: Optional[str] = None


class HybridResizeOrchestrator:
    """Main orchestrator for the resize pipeline."""

    def __init__(
        self,
        cascade: FallbackCascade,
        closers: Sequence[Callable[[], Awaitable[None]]] = (),
    ):
        self.cascade = cascade
        self._closers = list(closers)
        self._logger = get_logger("orchestrator")

    async def process(
        self,
        items: Sequence[WorkItem],
        options: ProcessingOptions,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationTokenProtocol] = None,
    ) -> BatchReport:
        """
        Resize a batch and report on it.

        Raises:
            ConfigurationError: invalid options or batch, nothing dispatched
            BatchCancelledError: ``cancel_token`` fired between chunks
        """
        start = time.perf_counter()
        result = await self.cascade.execute(items, options, on_progress, cancel_token)
        elapsed_ms = (time.perf_counter() - start) * 1000

        analytics = summarize(result.outcomes, elapsed_ms)
        self._logger.info(
            f"Processed {len(result.outcomes)} images via {result.path_used.value} "
            f"in {elapsed_ms:.0f}ms ({analytics.success_rate}% succeeded)"
        )
        return BatchReport(
            outcomes=result.outcomes,
            decision=result.decision,
            path_used=result.path_used,
            analytics=analytics,
            elapsed_ms=elapsed_ms,
            fallback_reason=result.fallback_reason,
        )

    async def aclose(self) -> None:
        """Release HTTP sessions; they are recreated on the next batch."""
        for close in self._closers:
            await close()

    def process_sync(
        self,
        items: Sequence[WorkItem],
        options: ProcessingOptions,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationTokenProtocol] = None,
    ) -> BatchReport:
        """Synchronous wrapper that runs one batch on a fresh event loop."""

        async def run() -> BatchReport:
            try:
                return await self.process(items, options, on_progress, cancel_token)
            finally:
                await self.aclose()

        return asyncio.run(run())

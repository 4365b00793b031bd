"""Fallback cascade: run remotely when chosen, fall back to local once on failure."""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ..core import (
    BatchProgress,
    ExecutionPath,
    HealthSample,
    Outcome,
    ProcessingOptions,
    RemoteError,
    RemoteUnavailableError,
    RoutingDecision,
    WorkItem,
    get_logger,
    validate_batch,
)
from ..core.protocols import (
    BatchRunner,
    CancellationTokenProtocol,
    HealthProbeProtocol,
    ProgressCallback,
)
from .engine import Workload, decide

DecideFunction = Callable[[Workload, HealthSample], RoutingDecision]


@dataclass(frozen=True)
class CascadeResult:
    """Outcomes of a batch plus the path that actually produced them."""

    outcomes: List[Outcome]
    path_used: ExecutionPath
    decision: RoutingDecision
    fallback_reason: Optional[str] = None

    @property
    def fell_back(self) -> bool:
        return self.fallback_reason is not None


class FallbackCascade:
    """
    Decide once, run on the chosen path, and retry locally at most once.

    Only batch-level remote errors (transport, protocol, or the service
    asking for local processing) trigger the fallback. Item failures are
    already outcomes and are returned as they are. A failure of the local
    run propagates to the caller.
    """

    def __init__(
        self,
        health_probe: HealthProbeProtocol,
        local_runner: BatchRunner,
        remote_runner: Optional[BatchRunner] = None,
        engine: DecideFunction = decide,
    ):
        self.health_probe = health_probe
        self.local_runner = local_runner
        self.remote_runner = remote_runner
        self.engine = engine
        self._logger = get_logger("cascade")

    async def execute(
        self,
        items: Sequence[WorkItem],
        options: ProcessingOptions,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationTokenProtocol] = None,
    ) -> CascadeResult:
        """
        Raises:
            ConfigurationError: before anything runs, for invalid batches
            BatchCancelledError: when ``cancel_token`` fires
        """
        validate_batch(items, options)
        items = list(items)
        total = len(items)

        health = await self.health_probe.check()
        decision = self.engine(Workload.from_items(items, options), health)
        self._notify(
            on_progress,
            BatchProgress.at(
                0,
                total,
                stage_label=f"Using {decision.chosen_path.value} processing",
                reasoning=decision.reasoning,
            ),
        )

        if decision.chosen_path is ExecutionPath.LOCAL:
            outcomes = await self.local_runner.run(items, options, on_progress, cancel_token)
            return CascadeResult(outcomes=outcomes, path_used=ExecutionPath.LOCAL, decision=decision)

        try:
            if self.remote_runner is None:
                raise RemoteUnavailableError("No remote service configured")
            outcomes = await self.remote_runner.run(items, options, on_progress, cancel_token)
            return CascadeResult(outcomes=outcomes, path_used=ExecutionPath.REMOTE, decision=decision)
        except RemoteError as exc:
            reason = str(exc) or type(exc).__name__
            if isinstance(exc, RemoteUnavailableError):
                self._logger.info(f"Remote processing unavailable, falling back to local: {reason}")
            else:
                self._logger.warning(f"Remote processing failed, falling back to local: {reason}")

        self._notify(
            on_progress,
            BatchProgress.at(
                0,
                total,
                stage_label="Falling back to local processing",
                warning=f"Remote processing failed: {reason}",
            ),
        )
        outcomes = await self.local_runner.run(items, options, on_progress, cancel_token)
        return CascadeResult(
            outcomes=outcomes,
            path_used=ExecutionPath.LOCAL,
            decision=decision,
            fallback_reason=reason,
        )

    @staticmethod
    def _notify(on_progress: Optional[ProgressCallback], progress: BatchProgress) -> None:
        if on_progress is not None:
            on_progress(progress)

"""Routing decision engine: scores local against remote execution for a batch."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Sequence

from pydantic import BaseModel, ConfigDict

from ..core import (
    ExecutionPath,
    HealthSample,
    ProcessingOptions,
    RoutingDecision,
    WorkItem,
    get_logger,
)

MIB = 1024 * 1024
LOW_QUALITY_THRESHOLD = 0.7
NEUTRAL_CLAUSE = "Balanced performance characteristics"


class OptionsComplexity(BaseModel):
    """How expensive the requested options are to apply."""

    model_config = ConfigDict(frozen=True)

    size_costly: bool = False
    complex_processing: bool = False

    @classmethod
    def from_options(cls, options: ProcessingOptions) -> "OptionsComplexity":
        return cls(
            size_costly=options.output_format == "png" or options.algorithm == "lanczos",
            complex_processing=options.watermark_enabled
            or options.quality < LOW_QUALITY_THRESHOLD,
        )


class Workload(BaseModel):
    """Shape of a batch as seen by the routing engine."""

    model_config = ConfigDict(frozen=True)

    item_count: int
    total_bytes: int
    avg_item_bytes: float
    options_complexity: OptionsComplexity = OptionsComplexity()

    @classmethod
    def from_items(
        cls, items: Sequence[WorkItem], options: ProcessingOptions
    ) -> "Workload":
        total = sum(item.size for item in items)
        return cls(
            item_count=len(items),
            total_bytes=total,
            avg_item_bytes=total / len(items) if items else 0.0,
            options_complexity=OptionsComplexity.from_options(options),
        )

    @property
    def total_mb(self) -> float:
        return self.total_bytes / MIB

    @property
    def avg_item_mb(self) -> float:
        return self.avg_item_bytes / MIB


def _latency_below(health: HealthSample, limit_ms: float) -> bool:
    return health.latency_ms is not None and health.latency_ms < limit_ms


def _latency_above(health: HealthSample, limit_ms: float) -> bool:
    return health.latency_ms is not None and health.latency_ms > limit_ms


@dataclass(frozen=True)
class ScoringRule:
    """One row of the scoring table: a condition worth points to one path."""

    factor: str
    path: ExecutionPath
    points: int
    applies: Callable[[Workload, HealthSample], bool]
    clause: str


REMOTE = ExecutionPath.REMOTE
LOCAL = ExecutionPath.LOCAL

# Evaluation order is also the order of the reasoning clauses.
SCORING_RULES = (
    ScoringRule("remote_reachable", REMOTE, 20,
                lambda w, h: h.available,
                "Server is available"),
    ScoringRule("remote_fast", REMOTE, 15,
                lambda w, h: _latency_below(h, 2000),
                "Server responds quickly"),
    ScoringRule("many_items", REMOTE, 10,
                lambda w, h: w.item_count > 5,
                "Large batch size benefits from server processing"),
    ScoringRule("large_total", REMOTE, 15,
                lambda w, h: w.total_mb > 50,
                "Large total file size is better handled on server"),
    ScoringRule("large_items", REMOTE, 10,
                lambda w, h: w.avg_item_mb > 5,
                "Large individual files are better handled on server"),
    ScoringRule("size_costly", REMOTE, 10,
                lambda w, h: w.options_complexity.size_costly,
                "High-quality formats benefit from server-side optimization"),
    ScoringRule("complex_processing", REMOTE, 15,
                lambda w, h: w.options_complexity.complex_processing,
                "Complex processing operations are optimized on server"),
    ScoringRule("remote_unreachable", LOCAL, 50,
                lambda w, h: not h.available,
                "Server is not available"),
    ScoringRule("remote_slow", LOCAL, 20,
                lambda w, h: _latency_above(h, 3000),
                "Server response time is too slow"),
    ScoringRule("few_items", LOCAL, 15,
                lambda w, h: w.item_count <= 3,
                "Small batch size is efficient locally"),
    ScoringRule("small_total", LOCAL, 10,
                lambda w, h: w.total_mb < 20,
                "Small file sizes can be processed locally"),
    ScoringRule("small_items", LOCAL, 10,
                lambda w, h: w.avg_item_mb < 2,
                "Small individual files are quick to process locally"),
)


def _factors(workload: Workload, health: HealthSample) -> Dict[str, Any]:
    return {
        "server_available": health.available,
        "server_response_time_ms": health.latency_ms,
        "deployment_unavailable": health.deployment_unavailable,
        "item_count": workload.item_count,
        "total_size_mb": round(workload.total_mb, 3),
        "avg_item_size_mb": round(workload.avg_item_mb, 3),
        "size_costly_format": workload.options_complexity.size_costly,
        "complex_processing": workload.options_complexity.complex_processing,
    }


def decide(workload: Workload, health: HealthSample) -> RoutingDecision:
    """
    Score both paths and pick one.

    Scores are additive and independent. Remote wins only with a strictly
    higher score, so ties go local.
    """
    fired = [rule for rule in SCORING_RULES if rule.applies(workload, health)]
    remote_score = sum(rule.points for rule in fired if rule.path is REMOTE)
    local_score = sum(rule.points for rule in fired if rule.path is LOCAL)
    chosen = REMOTE if remote_score > local_score else LOCAL

    reasoning = tuple(rule.clause for rule in fired if rule.path is chosen)
    decision = RoutingDecision(
        chosen_path=chosen,
        local_score=local_score,
        remote_score=remote_score,
        factors=_factors(workload, health),
        reasoning=reasoning or (NEUTRAL_CLAUSE,),
    )

    get_logger("routing").info(
        f"Routing decision: {chosen.value} (remote={remote_score}, local={local_score}) - "
        + "; ".join(decision.reasoning)
    )
    return decision

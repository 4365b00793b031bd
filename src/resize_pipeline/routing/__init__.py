"""Routing: health probing, the local/remote decision and the fallback cascade."""

from .cascade import CascadeResult, FallbackCascade
from .engine import (
    NEUTRAL_CLAUSE,
    SCORING_RULES,
    OptionsComplexity,
    ScoringRule,
    Workload,
    decide,
)
from .health import DisabledHealthProbe, HealthProbe

__all__ = [
    "CascadeResult",
    "FallbackCascade",
    "NEUTRAL_CLAUSE",
    "SCORING_RULES",
    "OptionsComplexity",
    "ScoringRule",
    "Workload",
    "decide",
    "DisabledHealthProbe",
    "HealthProbe",
]

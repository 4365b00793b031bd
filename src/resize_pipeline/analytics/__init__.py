"""Batch analytics."""

from .aggregator import summarize
from .report import (
    AdvancedMetrics,
    AnalyticsReport,
    EfficiencyScores,
    FormatShare,
    SizeChangeType,
    empty_report,
)

__all__ = [
    "summarize",
    "AdvancedMetrics",
    "AnalyticsReport",
    "EfficiencyScores",
    "FormatShare",
    "SizeChangeType",
    "empty_report",
]

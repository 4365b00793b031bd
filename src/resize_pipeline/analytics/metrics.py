"""Pure metric functions used by the analytics aggregator.

Every function takes plain aggregates and returns a number rounded to one
decimal place, so each can be checked against literal inputs on its own.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

import numpy as np

MIB = 1024 * 1024

FORMAT_WEIGHTS = {"WEBP": 1.5, "JPEG": 1.2, "PNG": 1.0}
DEFAULT_FORMAT_WEIGHT = 0.8


def round_half_up(value: float, places: int = 1) -> float:
    """Round with ties away from zero instead of Python's banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def population_variance(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(np.var(np.asarray(values, dtype=float)))


def compression_efficiency(ratios: Sequence[float]) -> float:
    """100 minus the population variance of the compression ratios, floored at 0."""
    if not ratios:
        return 0.0
    return round_half_up(max(0.0, 100 - population_variance(ratios)))


def processing_consistency(times_ms: Iterable[float]) -> float:
    """Penalise spread in per-item processing time; 100 when nothing was timed."""
    positive = [t for t in times_ms if t > 0]
    if not positive:
        return 100.0
    return round_half_up(max(0.0, 100 - population_variance(positive) / 1000))


def format_optimization(shares: Iterable[tuple]) -> float:
    """Weighted sum over ``(format, percentage)`` pairs, capped at 100."""
    score = sum(
        percentage * FORMAT_WEIGHTS.get(fmt, DEFAULT_FORMAT_WEIGHT)
        for fmt, percentage in shares
    )
    return round_half_up(min(100.0, score))


def resource_utilization(total_bytes: int, seconds: float) -> float:
    throughput_mib = (total_bytes / MIB) / seconds if seconds > 0 else 0.0
    return round_half_up(min(100.0, throughput_mib * 10))


def quality_preservation(ratios: Sequence[Optional[float]]) -> float:
    """100 minus the mean absolute compression ratio; missing ratios count as 0."""
    if not ratios:
        return 0.0
    mean = sum(abs(r) if r is not None else 0.0 for r in ratios) / len(ratios)
    return round_half_up(max(0.0, 100 - mean))


def batch_efficiency(count: int, seconds: float) -> float:
    per_second = count / seconds if seconds > 0 else 0.0
    return round_half_up(min(100.0, per_second * 20))


def speed_score(items_per_second: float) -> int:
    if items_per_second > 1:
        return 3
    if items_per_second > 0.5:
        return 2
    return 1


def size_score(size_change_type: str) -> int:
    return {"reduced": 3, "increased": 2}.get(size_change_type, 1)


def memory_score(total_original_bytes: int) -> int:
    if total_original_bytes < 50 * MIB:
        return 3
    if total_original_bytes < 200 * MIB:
        return 2
    return 1


def efficiency_label(total_score: int) -> str:
    if total_score >= 8:
        return "Excellent"
    if total_score >= 6:
        return "Good"
    if total_score >= 4:
        return "Fair"
    return "Poor"


def quality_impact_label(size_change_type: str, abs_percentage: float) -> str:
    """Fixed breakpoints, highest first."""
    if size_change_type == "increased":
        if abs_percentage > 50:
            return "High Quality"
        if abs_percentage > 20:
            return "Enhanced Quality"
        return "Quality Preserved"
    if size_change_type == "reduced":
        if abs_percentage > 70:
            return "Aggressive Compression"
        if abs_percentage > 40:
            return "Good Compression"
        if abs_percentage > 10:
            return "Mild Compression"
        return "Minimal Change"
    return "No Change"


def format_processing_time(seconds: float) -> str:
    """Render seconds as "42s", or as "2m 5s" past a minute."""
    if seconds > 60:
        return f"{int(seconds // 60)}m {int(seconds % 60)}s"
    return f"{int(seconds)}s"

"""Summarise a batch's outcomes into an AnalyticsReport."""

from collections import Counter
from typing import List, Sequence

from ..core import Failure, Outcome, Success, format_file_size, get_logger
from . import metrics
from .report import (
    SIZE_CHANGE_LABELS,
    AdvancedMetrics,
    AnalyticsReport,
    EfficiencyScores,
    FormatShare,
    SizeChangeType,
    empty_report,
)

logger = get_logger("analytics")


def _format_name(media_type: str) -> str:
    _, _, subtype = (media_type or "").partition("/")
    return subtype.upper() or "UNKNOWN"


def _format_distribution(successful: Sequence[Success]) -> List[FormatShare]:
    counts = Counter(_format_name(item.media_type) for item in successful)
    return [
        FormatShare(
            type=fmt,
            count=count,
            percentage=int(metrics.round_half_up(count / len(successful) * 100, 0)),
        )
        for fmt, count in counts.items()
    ]


def _size_change(size_delta: int) -> SizeChangeType:
    if size_delta > 0:
        return SizeChangeType.REDUCED
    if size_delta < 0:
        return SizeChangeType.INCREASED
    return SizeChangeType.UNCHANGED


def _signed_display(change: SizeChangeType, text: str) -> str:
    if change is SizeChangeType.REDUCED:
        return f"-{text}"
    if change is SizeChangeType.INCREASED:
        return f"+{text}"
    return text


def summarize(outcomes: Sequence[Outcome], elapsed_ms: float) -> AnalyticsReport:
    """
    Derive the batch report from the complete outcome list.

    Never raises on empty or all-failed input; both yield ``empty_report()``.

    Args:
        outcomes: one Outcome per input item, in any order
        elapsed_ms: wall-clock time of the whole batch; negatives count as 0
    """
    successful = [o for o in outcomes if isinstance(o, Success)]
    failed = [o for o in outcomes if isinstance(o, Failure)]
    if not successful:
        logger.info(f"No successful items among {len(outcomes)} outcomes; empty report")
        return empty_report()

    total_files = len(successful) + len(failed)
    success_rate = int(metrics.round_half_up(len(successful) / total_files * 100, 0))

    total_original = sum(o.original_size for o in successful)
    total_new = sum(o.new_size for o in successful)
    size_delta = total_original - total_new
    change = _size_change(size_delta)
    percentage = (
        metrics.round_half_up(size_delta / total_original * 100) if total_original else 0.0
    )
    abs_percentage = abs(percentage)

    ratios = [
        o.compression_ratio_percent
        for o in successful
        if o.compression_ratio_percent is not None
    ]

    seconds = max(0.0, elapsed_ms / 1000)
    items_per_second = metrics.round_half_up(len(successful) / seconds) if seconds > 0 else 0.0
    total_megapixels = metrics.round_half_up(
        sum(o.original_dimensions.megapixels for o in successful)
    )
    megapixel_throughput = (
        metrics.round_half_up(total_megapixels / seconds) if seconds > 0 else 0.0
    )

    distribution = _format_distribution(successful)
    scores = EfficiencyScores(
        speed=metrics.speed_score(items_per_second),
        size=metrics.size_score(change.value),
        memory=metrics.memory_score(total_original),
    )
    advanced = AdvancedMetrics(
        compression_efficiency=metrics.compression_efficiency(ratios),
        processing_consistency=metrics.processing_consistency(
            o.processing_time_ms for o in successful
        ),
        format_optimization=metrics.format_optimization(
            (share.type, share.percentage) for share in distribution
        ),
        resource_utilization=metrics.resource_utilization(total_original, seconds),
        quality_preservation=metrics.quality_preservation(
            [o.compression_ratio_percent for o in successful]
        ),
        batch_efficiency=metrics.batch_efficiency(len(successful), seconds),
    )

    report = AnalyticsReport(
        total_files=total_files,
        successful_count=len(successful),
        failed_count=len(failed),
        success_rate=success_rate,
        total_original_size=total_original,
        total_new_size=total_new,
        size_delta=size_delta,
        size_change_type=change,
        size_change_label=SIZE_CHANGE_LABELS[change],
        size_change_display=_signed_display(change, format_file_size(abs(size_delta))),
        size_change_percentage=percentage,
        size_change_percentage_display=_signed_display(change, f"{abs_percentage:.1f}%"),
        quality_impact_label=metrics.quality_impact_label(change.value, abs_percentage),
        average_compression=metrics.round_half_up(sum(ratios) / len(ratios)) if ratios else 0.0,
        best_compression=metrics.round_half_up(max(ratios)) if ratios else 0.0,
        worst_compression=metrics.round_half_up(min(ratios)) if ratios else 0.0,
        processing_time_seconds=seconds,
        processing_time_display=metrics.format_processing_time(seconds),
        items_per_second=items_per_second,
        total_megapixels=total_megapixels,
        megapixel_throughput=megapixel_throughput,
        format_distribution=tuple(distribution),
        original_total_display=format_file_size(total_original),
        processed_total_display=format_file_size(total_new),
        average_file_size_display=format_file_size(total_original / len(successful)),
        memory_used_display=format_file_size(total_original * 2),
        efficiency_scores=scores,
        efficiency_label=metrics.efficiency_label(scores.total),
        advanced=advanced,
    )
    logger.debug(
        f"Summarised {total_files} outcomes: success_rate={success_rate}% "
        f"size_change={report.size_change_percentage_display} "
        f"efficiency={report.efficiency_label}"
    )
    return report

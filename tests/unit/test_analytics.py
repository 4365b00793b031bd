"""Unit tests for the analytics aggregator and its metric functions."""

import math

import pytest

from resize_pipeline.analytics import (
    AnalyticsReport,
    SizeChangeType,
    empty_report,
    summarize,
)
from resize_pipeline.analytics import metrics
from resize_pipeline.analytics.metrics import MIB
from resize_pipeline.core import Dimensions, Failure, Success
from resize_pipeline.core.models import compression_ratio


def _success(index, original, new, media_type="image/jpeg", size=(1000, 1000), time_ms=0.0):
    return Success(
        index=index,
        name=f"img{index}.jpg",
        original_size=original,
        new_size=new,
        original_dimensions=Dimensions(width=size[0], height=size[1]),
        new_dimensions=Dimensions(width=size[0] // 2, height=size[1] // 2),
        compression_ratio_percent=compression_ratio(original, new),
        encoded_payload=b"x",
        media_type=media_type,
        processing_time_ms=time_ms,
    )


def _failure(index):
    return Failure(index=index, name=f"bad{index}.jpg", reason="corrupt")


def _floats(report: AnalyticsReport):
    values = [v for v in report.model_dump().values() if isinstance(v, float)]
    values += [v for v in report.advanced.model_dump().values()]
    return values


class TestSummarize:
    """Tests for summarize."""

    def test_three_reduced_items(self):
        """Sizes 1000/2000/3000 shrinking to 500/1000/1800 in 2 seconds."""
        outcomes = [
            _success(0, 1000, 500, time_ms=100),
            _success(1, 2000, 1000, time_ms=200),
            _success(2, 3000, 1800, time_ms=300),
        ]

        report = summarize(outcomes, 2000)

        assert report.success_rate == 100
        assert report.total_files == 3
        assert report.size_change_type is SizeChangeType.REDUCED
        assert report.total_original_size == 6000
        assert report.total_new_size == 3300
        assert report.size_delta == 2700
        assert report.size_change_percentage == 45.0
        assert report.size_change_percentage_display == "-45.0%"
        assert report.size_change_label == "Size Reduced"
        assert report.size_change_display == "-2.64 KB"
        assert report.quality_impact_label == "Good Compression"

        assert report.average_compression == 46.7
        assert report.best_compression == 50.0
        assert report.worst_compression == 40.0

        assert report.processing_time_seconds == 2.0
        assert report.processing_time_display == "2s"
        assert report.items_per_second == 1.5
        assert report.total_megapixels == 3.0
        assert report.megapixel_throughput == 1.5

        assert len(report.format_distribution) == 1
        assert report.format_distribution[0].type == "JPEG"
        assert report.format_distribution[0].count == 3
        assert report.format_distribution[0].percentage == 100

        assert report.original_total_display == "5.86 KB"
        assert report.processed_total_display == "3.22 KB"
        assert report.average_file_size_display == "1.95 KB"
        assert report.memory_used_display == "11.72 KB"

        assert report.efficiency_scores.total == 9
        assert report.efficiency_label == "Excellent"

        assert report.advanced.compression_efficiency == 77.8
        assert report.advanced.processing_consistency == 93.3
        assert report.advanced.format_optimization == 100.0
        assert report.advanced.resource_utilization == 0.0
        assert report.advanced.quality_preservation == 53.3
        assert report.advanced.batch_efficiency == 30.0

    def test_size_increase(self):
        report = summarize([_success(0, 1000, 1600)], 1000)

        assert report.size_change_type is SizeChangeType.INCREASED
        assert report.size_change_label == "Size Increased"
        assert report.size_change_display == "+600 Bytes"
        assert report.size_change_percentage == -60.0
        assert report.size_change_percentage_display == "+60.0%"
        assert report.quality_impact_label == "High Quality"
        assert report.best_compression == -60.0
        assert report.efficiency_scores.size == 2

    def test_size_unchanged(self):
        report = summarize([_success(0, 1000, 1000)], 1000)

        assert report.size_change_type is SizeChangeType.UNCHANGED
        assert report.size_change_label == "Size Unchanged"
        assert report.size_change_display == "0 Bytes"
        assert report.size_change_percentage_display == "0.0%"
        assert report.quality_impact_label == "No Change"
        assert report.efficiency_scores.size == 1

    @pytest.mark.parametrize(
        "successes,failures,rate",
        [(3, 1, 75), (2, 1, 67), (1, 2, 33), (1, 0, 100)],
    )
    def test_success_rate(self, successes, failures, rate):
        outcomes = [_success(i, 1000, 500) for i in range(successes)]
        outcomes += [_failure(successes + i) for i in range(failures)]

        report = summarize(outcomes, 1000)

        assert report.success_rate == rate
        assert report.total_files == successes + failures
        assert report.failed_count == failures

    def test_format_distribution(self):
        outcomes = [
            _success(0, 1000, 500, media_type="image/webp"),
            _success(1, 1000, 500, media_type="image/webp"),
            _success(2, 1000, 500, media_type="image/png"),
        ]

        report = summarize(outcomes, 1000)

        shares = {s.type: (s.count, s.percentage) for s in report.format_distribution}
        assert shares == {"WEBP": (2, 67), "PNG": (1, 33)}
        assert report.advanced.format_optimization == 100.0

    def test_zero_elapsed_time(self):
        report = summarize([_success(0, 1000, 500)], 0)

        assert report.processing_time_seconds == 0.0
        assert report.items_per_second == 0.0
        assert report.megapixel_throughput == 0.0
        assert report.advanced.batch_efficiency == 0.0
        assert report.advanced.resource_utilization == 0.0
        assert report.efficiency_scores.speed == 1

    def test_negative_elapsed_time_counts_as_zero(self):
        report = summarize([_success(0, 1000, 500)], -250)

        assert report.processing_time_seconds == 0.0

    def test_long_run_display(self):
        report = summarize([_success(0, 1000, 500)], 125_500)

        assert report.processing_time_display == "2m 5s"

    def test_missing_compression_ratio(self):
        outcome = _success(0, 1000, 500).model_copy(update={"compression_ratio_percent": None})

        report = summarize([outcome], 1000)

        assert report.average_compression == 0.0
        assert report.best_compression == 0.0
        assert report.advanced.compression_efficiency == 0.0
        assert report.advanced.quality_preservation == 100.0

    def test_empty_input(self):
        report = summarize([], 0)

        assert report == empty_report()
        assert report.total_files == 0
        assert report.success_rate == 0
        assert report.size_change_label == "No Data"
        assert report.quality_impact_label == "No Data"
        assert report.efficiency_label == "No Data"
        assert report.size_change_percentage_display == "0.0%"
        assert report.original_total_display == "0 Bytes"
        assert report.format_distribution == ()
        assert report.is_empty
        assert not any(math.isnan(v) for v in _floats(report))

    def test_all_failures(self):
        report = summarize([_failure(0), _failure(1)], 5000)

        assert report == empty_report()
        assert report.failed_count == 0
        assert report.advanced.processing_consistency == 0.0
        assert not any(math.isnan(v) for v in _floats(report))


class TestMetrics:
    """Each metric function against literal inputs."""

    @pytest.mark.parametrize(
        "value,places,expected",
        [(2.25, 1, 2.3), (0.05, 1, 0.1), (-2.25, 1, -2.3), (46.65, 1, 46.7), (66.5, 0, 67.0)],
    )
    def test_round_half_up(self, value, places, expected):
        assert metrics.round_half_up(value, places) == expected

    def test_population_variance(self):
        assert metrics.population_variance([2, 4, 4, 4, 5, 5, 7, 9]) == 4.0
        assert metrics.population_variance([]) == 0.0

    @pytest.mark.parametrize(
        "ratios,expected", [([], 0.0), ([10, 20], 75.0), ([0, 100], 0.0), ([42.0], 100.0)]
    )
    def test_compression_efficiency(self, ratios, expected):
        assert metrics.compression_efficiency(ratios) == expected

    @pytest.mark.parametrize(
        "times,expected",
        [([], 100.0), ([0, -5], 100.0), ([1000, 3000], 0.0), ([100, 200, 300], 93.3)],
    )
    def test_processing_consistency(self, times, expected):
        assert metrics.processing_consistency(times) == expected

    @pytest.mark.parametrize(
        "shares,expected",
        [
            ([("WEBP", 50), ("PNG", 50)], 100.0),
            ([("PNG", 40), ("GIF", 60)], 88.0),
            ([("JPEG", 50)], 60.0),
            ([], 0.0),
        ],
    )
    def test_format_optimization(self, shares, expected):
        assert metrics.format_optimization(shares) == expected

    @pytest.mark.parametrize(
        "total,seconds,expected",
        [(5 * MIB, 1, 50.0), (100 * MIB, 1, 100.0), (MIB, 0, 0.0), (MIB, 4, 2.5)],
    )
    def test_resource_utilization(self, total, seconds, expected):
        assert metrics.resource_utilization(total, seconds) == expected

    @pytest.mark.parametrize(
        "ratios,expected", [([10.0, -30.0, None], 86.7), ([], 0.0), ([150.0], 0.0)]
    )
    def test_quality_preservation(self, ratios, expected):
        assert metrics.quality_preservation(ratios) == expected

    @pytest.mark.parametrize(
        "count,seconds,expected", [(3, 2, 30.0), (10, 1, 100.0), (5, 0, 0.0)]
    )
    def test_batch_efficiency(self, count, seconds, expected):
        assert metrics.batch_efficiency(count, seconds) == expected

    @pytest.mark.parametrize(
        "change,pct,label",
        [
            ("increased", 75.0, "High Quality"),
            ("increased", 50.0, "Enhanced Quality"),
            ("increased", 20.0, "Quality Preserved"),
            ("reduced", 70.1, "Aggressive Compression"),
            ("reduced", 70.0, "Good Compression"),
            ("reduced", 40.0, "Mild Compression"),
            ("reduced", 10.0, "Minimal Change"),
            ("unchanged", 0.0, "No Change"),
        ],
    )
    def test_quality_impact_label(self, change, pct, label):
        assert metrics.quality_impact_label(change, pct) == label

    @pytest.mark.parametrize(
        "items_per_second,score", [(1.5, 3), (1.0, 2), (0.6, 2), (0.5, 1), (0.0, 1)]
    )
    def test_speed_score(self, items_per_second, score):
        assert metrics.speed_score(items_per_second) == score

    @pytest.mark.parametrize(
        "total,score", [(49 * MIB, 3), (50 * MIB, 2), (199 * MIB, 2), (200 * MIB, 1)]
    )
    def test_memory_score(self, total, score):
        assert metrics.memory_score(total) == score

    @pytest.mark.parametrize(
        "total,label",
        [(9, "Excellent"), (8, "Excellent"), (7, "Good"), (6, "Good"), (5, "Fair"), (4, "Fair"), (3, "Poor")],
    )
    def test_efficiency_label(self, total, label):
        assert metrics.efficiency_label(total) == label

    @pytest.mark.parametrize(
        "seconds,text", [(0, "0s"), (59.9, "59s"), (60, "60s"), (125.5, "2m 5s")]
    )
    def test_format_processing_time(self, seconds, text):
        assert metrics.format_processing_time(seconds) == text

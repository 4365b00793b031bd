"""Analytics report models."""

from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict

NO_DATA = "No Data"


class SizeChangeType(str, Enum):
    REDUCED = "reduced"
    INCREASED = "increased"
    UNCHANGED = "unchanged"


SIZE_CHANGE_LABELS = {
    SizeChangeType.REDUCED: "Size Reduced",
    SizeChangeType.INCREASED: "Size Increased",
    SizeChangeType.UNCHANGED: "Size Unchanged",
}


class FormatShare(BaseModel):
    """Share of successful outputs encoded in one format."""

    model_config = ConfigDict(frozen=True)

    type: str
    count: int
    percentage: int


class AdvancedMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    compression_efficiency: float = 0.0
    processing_consistency: float = 0.0
    format_optimization: float = 0.0
    resource_utilization: float = 0.0
    quality_preservation: float = 0.0
    batch_efficiency: float = 0.0


class EfficiencyScores(BaseModel):
    """Speed, size-direction and memory sub-scores, each in 1..3."""

    model_config = ConfigDict(frozen=True)

    speed: int = 0
    size: int = 0
    memory: int = 0

    @property
    def total(self) -> int:
        return self.speed + self.size + self.memory


class AnalyticsReport(BaseModel):
    """
    Read-only summary of one batch, computed once from its outcomes.

    ``size_change_percentage`` is ``size_delta / total_original_size * 100``,
    positive when the batch shrank. The display string carries the sign of
    the size change instead ("-45.0%" for a reduction).
    """

    model_config = ConfigDict(frozen=True)

    total_files: int = 0
    successful_count: int = 0
    failed_count: int = 0
    success_rate: int = 0

    total_original_size: int = 0
    total_new_size: int = 0
    size_delta: int = 0
    size_change_type: SizeChangeType = SizeChangeType.UNCHANGED
    size_change_label: str = NO_DATA
    size_change_display: str = "0 Bytes"
    size_change_percentage: float = 0.0
    size_change_percentage_display: str = "0.0%"
    quality_impact_label: str = NO_DATA

    average_compression: float = 0.0
    best_compression: float = 0.0
    worst_compression: float = 0.0

    processing_time_seconds: float = 0.0
    processing_time_display: str = "0s"
    items_per_second: float = 0.0
    total_megapixels: float = 0.0
    megapixel_throughput: float = 0.0

    format_distribution: Tuple[FormatShare, ...] = ()

    original_total_display: str = "0 Bytes"
    processed_total_display: str = "0 Bytes"
    average_file_size_display: str = "0 Bytes"
    memory_used_display: str = "0 Bytes"

    efficiency_scores: EfficiencyScores = EfficiencyScores()
    efficiency_label: str = NO_DATA
    advanced: AdvancedMetrics = AdvancedMetrics()

    @property
    def is_empty(self) -> bool:
        return self.successful_count == 0


def empty_report() -> AnalyticsReport:
    """The neutral report returned when no item succeeded."""
    return AnalyticsReport()

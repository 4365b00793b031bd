"""Shared data models for the resize pipeline."""

import math
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Limits enforced before any item is dispatched.
MAX_FILE_SIZE = 50 * 1024 * 1024
MAX_FILES = 100
MIN_DIMENSION = 1
MAX_DIMENSION = 8192
MIN_QUALITY = 0.1
SUPPORTED_MEDIA_TYPES = (
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/bmp",
)
OUTPUT_FORMATS = ("jpeg", "png", "webp")
RESIZE_ALGORITHMS = ("lanczos", "bicubic", "bilinear", "nearest")


class ExecutionPath(str, Enum):
    """Where a batch is executed."""

    LOCAL = "local"
    REMOTE = "remote"


class WatermarkPosition(str, Enum):
    """Anchor for watermark text."""

    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    CENTER_LEFT = "center-left"
    CENTER = "center"
    CENTER_RIGHT = "center-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"


class WorkItem(BaseModel):
    """One image to be resized. Never mutated once enqueued."""

    model_config = ConfigDict(frozen=True)

    name: str
    payload: bytes = Field(repr=False)
    size: int = Field(ge=0)
    media_type: str = "image/jpeg"

    @classmethod
    def from_bytes(cls, name: str, payload: bytes, media_type: str) -> "WorkItem":
        """Build an item whose declared size is the payload length."""
        return cls(name=name, payload=payload, size=len(payload), media_type=media_type)


class WatermarkOptions(BaseModel):
    """Text watermark drawn over the resized image."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    text: str = ""
    position: WatermarkPosition = WatermarkPosition.BOTTOM_RIGHT
    opacity: float = Field(default=0.7, ge=0.0, le=1.0)
    font_size: int = Field(default=24, ge=1)
    color: str = "#FFFFFF"


class ProcessingOptions(BaseModel):
    """Read-only configuration snapshot shared by every item of a batch.

    ``quality`` is accepted either as a fraction in (0, 1] or as a
    percentage in (1, 100] and is always stored as a fraction.
    """

    model_config = ConfigDict(frozen=True)

    width: Optional[int] = None
    height: Optional[int] = None
    quality: float = 0.9
    output_format: Literal["jpeg", "png", "webp"] = "jpeg"
    algorithm: Literal["lanczos", "bicubic", "bilinear", "nearest"] = "lanczos"
    maintain_aspect_ratio: bool = True
    background_color: Optional[str] = None
    watermark: Optional[WatermarkOptions] = None

    @field_validator("quality", mode="before")
    @classmethod
    def _normalise_quality(cls, value: Any) -> float:
        quality = float(value)
        if math.isnan(quality) or quality <= 0 or quality > 100:
            raise ValueError("Quality must be in (0, 1] or (1, 100]")
        if quality > 1:
            quality = quality / 100
        if quality < MIN_QUALITY:
            raise ValueError(f"Quality must be between {MIN_QUALITY} and 1.0")
        return quality

    @field_validator("output_format", mode="before")
    @classmethod
    def _normalise_format(cls, value: Any) -> str:
        fmt = str(value).lower()
        if fmt.startswith("image/"):
            fmt = fmt[len("image/"):]
        return "jpeg" if fmt == "jpg" else fmt

    @model_validator(mode="after")
    def _check_dimensions(self) -> "ProcessingOptions":
        if not self.width and not self.height:
            raise ValueError(
                "At least one dimension (width or height) must be specified"
            )
        for label, value in (("Width", self.width), ("Height", self.height)):
            if value is not None and not MIN_DIMENSION <= value <= MAX_DIMENSION:
                raise ValueError(
                    f"{label} must be between {MIN_DIMENSION} and {MAX_DIMENSION} pixels"
                )
        return self

    @property
    def quality_percent(self) -> int:
        """Quality on the 1-100 encoder scale."""
        return max(1, min(100, int(round(self.quality * 100))))

    @property
    def watermark_enabled(self) -> bool:
        return bool(self.watermark and self.watermark.enabled and self.watermark.text)

    @property
    def media_type(self) -> str:
        return f"image/{self.output_format}"

    def to_wire(self) -> Dict[str, Any]:
        """Options as sent to the remote batch endpoint."""
        wire: Dict[str, Any] = {
            "width": self.width,
            "height": self.height,
            "quality": self.quality_percent,
            "format": self.output_format,
            "algorithm": self.algorithm,
            "maintainAspectRatio": self.maintain_aspect_ratio,
            "backgroundColor": self.background_color,
            "watermark": None,
        }
        if self.watermark is not None:
            wire["watermark"] = {
                "enabled": self.watermark.enabled,
                "text": self.watermark.text,
                "position": self.watermark.position.value,
                "opacity": self.watermark.opacity,
                "fontSize": self.watermark.font_size,
                "color": self.watermark.color,
            }
        return wire


class Dimensions(BaseModel):
    """Pixel dimensions of an image."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(ge=0)
    height: int = Field(ge=0)

    @property
    def megapixels(self) -> float:
        return (self.width * self.height) / 1_000_000


class ResizedImage(BaseModel):
    """What a resize capability hands back for one item."""

    model_config = ConfigDict(frozen=True)

    original_size: int
    new_size: int
    original_dimensions: Dimensions
    new_dimensions: Dimensions
    encoded_payload: bytes = Field(repr=False)
    media_type: str


def compression_ratio(original_size: int, new_size: int) -> Optional[float]:
    """Percentage saved; negative when the output grew, None without a baseline."""
    if not original_size:
        return None
    return round((original_size - new_size) / original_size * 100, 1)


class Success(BaseModel):
    """Outcome of an item that was resized."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    index: int
    name: str
    original_size: int
    new_size: int
    original_dimensions: Dimensions
    new_dimensions: Dimensions
    compression_ratio_percent: Optional[float] = None
    encoded_payload: bytes = Field(repr=False)
    media_type: str
    processing_time_ms: float = 0.0

    @classmethod
    def from_resized(
        cls,
        index: int,
        name: str,
        resized: ResizedImage,
        processing_time_ms: float = 0.0,
    ) -> "Success":
        return cls(
            index=index,
            name=name,
            original_size=resized.original_size,
            new_size=resized.new_size,
            original_dimensions=resized.original_dimensions,
            new_dimensions=resized.new_dimensions,
            compression_ratio_percent=compression_ratio(
                resized.original_size, resized.new_size
            ),
            encoded_payload=resized.encoded_payload,
            media_type=resized.media_type,
            processing_time_ms=processing_time_ms,
        )


class Failure(BaseModel):
    """Outcome of an item that could not be processed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    index: int
    name: str
    reason: str


Outcome = Annotated[Union[Success, Failure], Field(discriminator="kind")]


class ChunkInfo(BaseModel):
    """Position of the chunk that just completed."""

    model_config = ConfigDict(frozen=True)

    current_chunk: int
    total_chunks: int
    chunk_size: int


class BatchProgress(BaseModel):
    """A single progress event. Consumers must not retain it."""

    model_config = ConfigDict(frozen=True)

    completed: int
    total: int
    percentage_completed: int
    current_chunk: Optional[ChunkInfo] = None
    current_item: Optional[str] = None
    stage_label: Optional[str] = None
    warning: Optional[str] = None
    reasoning: Tuple[str, ...] = ()

    @classmethod
    def at(cls, completed: int, total: int, **kwargs: Any) -> "BatchProgress":
        """Build an event, deriving the percentage from ``completed/total``."""
        percentage = int(math.floor(completed / total * 100 + 0.5)) if total else 0
        return cls(
            completed=completed,
            total=total,
            percentage_completed=percentage,
            **kwargs,
        )


class HealthSample(BaseModel):
    """One reachability measurement of the remote capability."""

    model_config = ConfigDict(frozen=True)

    available: bool
    latency_ms: Optional[float] = None
    status: int = 0
    deployment_unavailable: bool = False
    error: Optional[str] = None

    @classmethod
    def unreachable(cls, error: str) -> "HealthSample":
        return cls(available=False, error=error)


class RoutingDecision(BaseModel):
    """Chosen execution path and the scores behind it."""

    model_config = ConfigDict(frozen=True)

    chosen_path: ExecutionPath
    local_score: int
    remote_score: int
    factors: Dict[str, Any] = Field(default_factory=dict)
    reasoning: Tuple[str, ...] = ()

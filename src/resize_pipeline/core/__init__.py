"""Core utilities and shared components for the resize pipeline."""

from .config import MAX_REMOTE_BATCH_SIZE, PipelineSettings
from .exceptions import (
    BatchCancelledError,
    ConfigurationError,
    ItemProcessingError,
    RemoteError,
    RemoteProtocolError,
    RemoteTransportError,
    RemoteUnavailableError,
    ResizePipelineError,
    StorageError,
)
from .image_utils import calculate_dimensions, resize_image_bytes
from .logging_config import get_logger, set_debug_logging, setup_logger
from .models import (
    BatchProgress,
    ChunkInfo,
    Dimensions,
    ExecutionPath,
    Failure,
    HealthSample,
    Outcome,
    ProcessingOptions,
    ResizedImage,
    RoutingDecision,
    Success,
    WatermarkOptions,
    WatermarkPosition,
    WorkItem,
)
from .validation import (
    format_file_size,
    generate_output_filename,
    load_options,
    sanitize_filename,
    validate_batch,
)

__all__ = [
    "MAX_REMOTE_BATCH_SIZE",
    "PipelineSettings",
    "ResizePipelineError",
    "ConfigurationError",
    "ItemProcessingError",
    "StorageError",
    "RemoteError",
    "RemoteTransportError",
    "RemoteProtocolError",
    "RemoteUnavailableError",
    "BatchCancelledError",
    "calculate_dimensions",
    "resize_image_bytes",
    "setup_logger",
    "get_logger",
    "set_debug_logging",
    "BatchProgress",
    "ChunkInfo",
    "Dimensions",
    "ExecutionPath",
    "Failure",
    "HealthSample",
    "Outcome",
    "ProcessingOptions",
    "ResizedImage",
    "RoutingDecision",
    "Success",
    "WatermarkOptions",
    "WatermarkPosition",
    "WorkItem",
    "format_file_size",
    "generate_output_filename",
    "load_options",
    "sanitize_filename",
    "validate_batch",
]

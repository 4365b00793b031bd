"""Upfront validation of a batch, and filename helpers for its outputs."""

import re
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from .exceptions import ConfigurationError
from .image_utils import has_background, parse_color
from .models import (
    MAX_FILE_SIZE,
    MAX_FILES,
    SUPPORTED_MEDIA_TYPES,
    ProcessingOptions,
    WorkItem,
)


def format_file_size(num_bytes: float) -> str:
    """Human readable size: "0 Bytes", "1.5 KB", "12.34 MB", capped at GB."""
    if num_bytes is None or num_bytes != num_bytes or num_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    index = 0
    value = float(num_bytes)
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    text = f"{round(value, 2):.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[index]}"


def load_options(data: Dict[str, Any]) -> ProcessingOptions:
    """Build ProcessingOptions, reporting problems as a ConfigurationError."""
    try:
        return ProcessingOptions(**data)
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        raise ConfigurationError(f"Invalid processing options: {messages}") from exc


def validate_item(item: WorkItem) -> List[str]:
    """Return the list of problems with a single item (empty when valid)."""
    errors = []
    if item.media_type not in SUPPORTED_MEDIA_TYPES:
        errors.append(f"Unsupported format: {item.media_type}")
    if item.size > MAX_FILE_SIZE:
        errors.append(
            f"File too large: {format_file_size(item.size)} "
            f"(max: {format_file_size(MAX_FILE_SIZE)})"
        )
    if item.size == 0:
        errors.append("File is empty")
    return errors


def validate_batch(items: Sequence[WorkItem], options: ProcessingOptions) -> None:
    """
    Reject a batch before anything is dispatched.

    Raises:
        ConfigurationError: listing every problem found.
    """
    if not isinstance(options, ProcessingOptions):
        raise ConfigurationError("Processing options are required")

    errors = []
    for label, color in (
        ("background color", options.background_color),
        ("watermark color", options.watermark.color if options.watermark else None),
    ):
        if has_background(color):
            try:
                parse_color(color)
            except ValueError:
                errors.append(f"Invalid {label}: {color}")
    if len(items) > MAX_FILES:
        errors.append(f"Too many files: {len(items)} (max: {MAX_FILES})")
    for item in items:
        errors.extend(f"{item.name}: {problem}" for problem in validate_item(item))

    if errors:
        raise ConfigurationError("; ".join(errors))


def sanitize_filename(filename: str) -> str:
    """Replace characters that are unsafe in file names or object keys."""
    cleaned = re.sub(r'[<>:"/\\|?*]', "_", filename)
    cleaned = re.sub(r"\s+", "_", cleaned)
    cleaned = re.sub(r"_{2,}", "_", cleaned)
    cleaned = cleaned.strip("_")
    return cleaned[:255]


def generate_output_filename(
    original_name: str, suffix: str = "_resized", extension: str = ""
) -> str:
    """``photo.png`` -> ``photo_resized.jpeg`` for a jpeg output."""
    base_name, dot, original_ext = original_name.rpartition(".")
    if not dot:
        base_name, original_ext = original_name, ""
    ext = extension or original_ext
    name = f"{base_name}{suffix}.{ext}" if ext else f"{base_name}{suffix}"
    return sanitize_filename(name)

"""Custom exceptions for the resize pipeline."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator


class ResizePipelineError(Exception):
    """Base exception for all resize pipeline errors."""


class ConfigurationError(ResizePipelineError):
    """Invalid options or batch limits; raised before any item is dispatched."""


class ItemProcessingError(ResizePipelineError):
    """A single work item could not be resized."""


class StorageError(ResizePipelineError):
    """Reading or writing images from S3 or disk failed."""


class RemoteError(ResizePipelineError):
    """Batch-level failure of the remote capability."""


class RemoteTransportError(RemoteError):
    """The remote service is unreachable, timed out or returned an error status."""


class RemoteProtocolError(RemoteError):
    """The remote service answered with a payload that cannot be interpreted."""


class RemoteUnavailableError(RemoteError):
    """The remote service reports processing is unavailable in this deployment."""


class BatchCancelledError(ResizePipelineError):
    """A run was cancelled at a chunk boundary."""

    def __init__(self, completed: int, total: int) -> None:
        super().__init__(f"Batch cancelled after {completed}/{total} items")
        self.completed = completed
        self.total = total


@contextmanager
def remote_error_boundary(operation: str) -> Iterator[Any]:
    """Re-raise anything unexpected inside a remote call as a protocol error."""
    try:
        yield
    except ResizePipelineError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise RemoteProtocolError(f"{operation}: malformed response ({exc})") from exc

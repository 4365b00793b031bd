"""Batch execution: the chunked executor and the local/remote runners built on it."""

from .executor import CancellationToken, ChunkedExecutor, chunk_items, derive_concurrency
from .local import LocalBatchRunner, resize_locally
from .remote import (
    BatchCompleted,
    ProcessingUnavailable,
    RemoteBatchRunner,
    RemoteResizeClient,
    parse_batch_response,
)

__all__ = [
    "CancellationToken",
    "ChunkedExecutor",
    "chunk_items",
    "derive_concurrency",
    "LocalBatchRunner",
    "resize_locally",
    "BatchCompleted",
    "ProcessingUnavailable",
    "RemoteBatchRunner",
    "RemoteResizeClient",
    "parse_batch_response",
]

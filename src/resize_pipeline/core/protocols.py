"""Protocol definitions for dependency injection and testability."""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from .models import (
    BatchProgress,
    HealthSample,
    Outcome,
    ProcessingOptions,
    ResizedImage,
    WorkItem,
)

ProgressCallback = Callable[[BatchProgress], None]

# Resize one item; raising turns the item into a Failure outcome.
ItemProcessor = Callable[[WorkItem], Awaitable[ResizedImage]]

IndexedItem = Tuple[int, WorkItem]

# Resize one chunk in a single call; raising aborts the whole run.
ChunkProcessor = Callable[[Sequence[IndexedItem]], Awaitable[List[Outcome]]]


class CancellationTokenProtocol(Protocol):
    """Checked by the executor before each chunk."""

    @property
    def cancelled(self) -> bool:
        ...


class HealthProbeProtocol(Protocol):
    """Measures reachability of the remote capability."""

    async def check(self) -> HealthSample:
        """Take one health sample; never raises for network problems."""
        ...


class RemoteBatchTransport(Protocol):
    """Sends one chunk of at most ten items to the remote capability."""

    async def process_batch(
        self,
        items: Sequence[IndexedItem],
        options: ProcessingOptions,
        batch_id: Optional[str] = None,
    ) -> Any:
        """Return a BatchCompleted or ProcessingUnavailable response."""
        ...


class BatchRunner(Protocol):
    """Runs a whole batch on one execution path."""

    async def run(
        self,
        items: Sequence[WorkItem],
        options: ProcessingOptions,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationTokenProtocol] = None,
    ) -> List[Outcome]:
        """Return exactly one outcome per item, in input order."""
        ...


class S3ClientProtocol(Protocol):
    """The subset of the boto3 S3 client used by the storage layer."""

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        ...

    def put_object(
        self, Bucket: str, Key: str, Body: bytes, ContentType: str
    ) -> Dict[str, Any]:
        ...

    def get_paginator(self, operation_name: str) -> Any:
        ...

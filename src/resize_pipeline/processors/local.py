"""Local processor implementation - resizes with Pillow inside this process."""

import asyncio
from typing import List, Optional, Sequence

from ..core import (
    MAX_REMOTE_BATCH_SIZE,
    Outcome,
    ProcessingOptions,
    ResizedImage,
    WorkItem,
    get_logger,
    resize_image_bytes,
)
from ..core.protocols import CancellationTokenProtocol, ProgressCallback
from .executor import ChunkedExecutor, derive_concurrency


async def resize_locally(item: WorkItem, options: ProcessingOptions) -> ResizedImage:
    """Resize one item off the event loop so a chunk's items overlap."""
    logger = get_logger("local")
    logger.debug(f"[{item.name}] Resizing locally ({item.size} bytes)")
    return await asyncio.to_thread(resize_image_bytes, item.payload, item.size, options)


class LocalBatchRunner:
    """Runs a whole batch against the local resize capability."""

    def __init__(
        self,
        executor: Optional[ChunkedExecutor] = None,
        max_concurrency: int = MAX_REMOTE_BATCH_SIZE,
    ):
        self.executor = executor or ChunkedExecutor(name="Local resize batch")
        self.max_concurrency = max_concurrency

    async def run(
        self,
        items: Sequence[WorkItem],
        options: ProcessingOptions,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationTokenProtocol] = None,
    ) -> List[Outcome]:
        concurrency = derive_concurrency(len(items), self.max_concurrency)
        get_logger("local").info(
            f"Processing {len(items)} images locally, {concurrency} at a time"
        )

        async def processor(item: WorkItem) -> ResizedImage:
            return await resize_locally(item, options)

        return await self.executor.run(
            items,
            concurrency,
            processor,
            on_progress=on_progress,
            cancel_token=cancel_token,
        )

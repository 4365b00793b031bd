"""Chunked concurrent executor - bounded asyncio fan-out with a barrier per chunk."""

import asyncio
import threading
import time
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from ..core import (
    MAX_REMOTE_BATCH_SIZE,
    BatchCancelledError,
    BatchProgress,
    ChunkInfo,
    Failure,
    Outcome,
    ResizedImage,
    Success,
    WorkItem,
    get_logger,
)
from ..core.error_handling import BatchOperationContextManager
from ..core.protocols import (
    CancellationTokenProtocol,
    ChunkProcessor,
    IndexedItem,
    ItemProcessor,
    ProgressCallback,
)

ChunkDispatch = Callable[[Sequence[IndexedItem]], Awaitable[List[Outcome]]]


class CancellationToken:
    """Cooperative cancellation flag, safe to set from another thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def derive_concurrency(
    item_count: int, max_concurrency: int = MAX_REMOTE_BATCH_SIZE
) -> int:
    """
    Chunk size for a local run: large batches get smaller chunks.

    ``min(max_concurrency, max(1, 1000 // item_count))``, never above the
    remote transport's per-call limit.
    """
    upper = max(1, min(max_concurrency, MAX_REMOTE_BATCH_SIZE))
    if item_count <= 0:
        return upper
    return min(upper, max(1, 1000 // item_count))


def chunk_items(
    items: Sequence[WorkItem], chunk_size: int
) -> List[List[IndexedItem]]:
    """Split items into consecutive (index, item) chunks; the last may be short."""
    indexed = list(enumerate(items))
    return [indexed[i : i + chunk_size] for i in range(0, len(indexed), chunk_size)]


async def _timed(processor: ItemProcessor, item: WorkItem) -> Tuple[object, float]:
    start = time.perf_counter()
    result = await processor(item)
    return result, (time.perf_counter() - start) * 1000


class ChunkedExecutor:
    """
    Runs a batch in sequential chunks, dispatching each chunk concurrently.

    Every chunk is a barrier: all of its items resolve before the next chunk
    starts. Progress is reported once per chunk, and the executor pauses for
    ``yield_interval`` seconds between chunks (never after the last).
    """

    def __init__(self, yield_interval: float = 0.01, name: str = "Chunked batch"):
        if yield_interval < 0:
            raise ValueError("yield_interval must be non-negative")
        self.yield_interval = yield_interval
        self.name = name
        self._logger = get_logger("executor")

    async def run(
        self,
        items: Sequence[WorkItem],
        concurrency: int,
        processor: ItemProcessor,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationTokenProtocol] = None,
    ) -> List[Outcome]:
        """
        Process every item with ``processor``, ``concurrency`` items at a time.

        An exception raised by ``processor`` becomes a Failure outcome for that
        item only; siblings in the same chunk are unaffected.

        Returns:
            One outcome per input item, in input order.
        """

        async def dispatch(chunk: Sequence[IndexedItem]) -> List[Outcome]:
            results = await asyncio.gather(
                *(_timed(processor, item) for _, item in chunk),
                return_exceptions=True,
            )
            outcomes: List[Outcome] = []
            for (index, item), result in zip(chunk, results):
                if isinstance(result, BaseException) and not isinstance(result, Exception):
                    raise result
                if isinstance(result, Exception):
                    reason = str(result) or type(result).__name__
                    self._logger.debug(f"[{item.name}] Processing failed: {reason}")
                    outcomes.append(Failure(index=index, name=item.name, reason=reason))
                    continue

                value, elapsed_ms = result
                if isinstance(value, ResizedImage):
                    outcomes.append(Success.from_resized(index, item.name, value, elapsed_ms))
                elif isinstance(value, (Success, Failure)):
                    outcomes.append(value.model_copy(update={"index": index}))
                else:
                    outcomes.append(
                        Failure(
                            index=index,
                            name=item.name,
                            reason=f"Processor returned unsupported result {type(value).__name__}",
                        )
                    )
            return outcomes

        return await self._run_chunks(items, concurrency, dispatch, on_progress, cancel_token)

    async def run_batched(
        self,
        items: Sequence[WorkItem],
        chunk_size: int,
        chunk_processor: ChunkProcessor,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationTokenProtocol] = None,
    ) -> List[Outcome]:
        """
        Hand each chunk to ``chunk_processor`` in a single call.

        ``chunk_processor`` returns indexed outcomes for its chunk. Anything it
        raises is a dispatch failure and aborts the whole run.
        """
        return await self._run_chunks(items, chunk_size, chunk_processor, on_progress, cancel_token)

    async def _run_chunks(
        self,
        items: Sequence[WorkItem],
        chunk_size: int,
        dispatch: ChunkDispatch,
        on_progress: Optional[ProgressCallback],
        cancel_token: Optional[CancellationTokenProtocol],
    ) -> List[Outcome]:
        if chunk_size < 1:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")

        total = len(items)
        chunks = chunk_items(items, chunk_size)
        outcomes: List[Optional[Outcome]] = [None] * total
        processed = 0
        success_count = 0
        error_count = 0

        self._logger.info(
            f"Starting processing of {total} items in {len(chunks)} chunks of up to {chunk_size}."
        )

        with BatchOperationContextManager(operation_name=self.name) as batch_manager:
            for number, chunk in enumerate(chunks, start=1):
                if cancel_token is not None and cancel_token.cancelled:
                    self._logger.warning(f"{self.name} cancelled before chunk {number}/{len(chunks)}.")
                    raise BatchCancelledError(processed, total)

                chunk_start = time.perf_counter()
                chunk_outcomes = await dispatch(chunk)
                self._place(chunk, chunk_outcomes, outcomes)

                for outcome in chunk_outcomes:
                    if isinstance(outcome, Success):
                        success_count += 1
                    else:
                        error_count += 1
                        batch_manager.add_error(
                            item_identifier=outcome.name, error_message=outcome.reason
                        )

                processed += len(chunk)
                chunk_time = time.perf_counter() - chunk_start
                rate = len(chunk) / chunk_time if chunk_time > 0 else 0
                self._logger.info(
                    f"Progress: {min(processed, total)}/{total} - Chunk {number}/{len(chunks)} - "
                    f"Rate: {rate:.1f} items/sec - Success: {success_count}, Errors: {error_count}"
                )

                if on_progress is not None:
                    on_progress(
                        BatchProgress.at(
                            min(processed, total),
                            total,
                            current_chunk=ChunkInfo(
                                current_chunk=number,
                                total_chunks=len(chunks),
                                chunk_size=len(chunk),
                            ),
                            current_item=chunk[-1][1].name,
                        )
                    )

                if number < len(chunks):
                    await asyncio.sleep(self.yield_interval)

        return [outcome for outcome in outcomes if outcome is not None]

    @staticmethod
    def _place(
        chunk: Sequence[IndexedItem],
        chunk_outcomes: Sequence[Outcome],
        outcomes: List[Optional[Outcome]],
    ) -> None:
        expected = sorted(index for index, _ in chunk)
        received = sorted(outcome.index for outcome in chunk_outcomes)
        if expected != received:
            raise ValueError(
                f"Chunk returned outcomes for indexes {received}, expected {expected}"
            )
        for outcome in chunk_outcomes:
            outcomes[outcome.index] = outcome

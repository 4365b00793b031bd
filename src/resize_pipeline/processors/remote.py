"""Remote processor implementation - sends chunks to the remote resize service."""

import asyncio
import base64
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import aiohttp

from ..core import (
    MAX_REMOTE_BATCH_SIZE,
    Dimensions,
    Failure,
    Outcome,
    ProcessingOptions,
    RemoteProtocolError,
    RemoteTransportError,
    RemoteUnavailableError,
    ResizedImage,
    Success,
    WorkItem,
    get_logger,
)
from ..core.exceptions import remote_error_boundary
from ..core.protocols import (
    CancellationTokenProtocol,
    IndexedItem,
    ProgressCallback,
    RemoteBatchTransport,
)
from .executor import ChunkedExecutor

BATCH_ENDPOINT = "batch-processor"


@dataclass(frozen=True)
class BatchCompleted:
    """The remote service processed the chunk; outcomes may include failures."""

    outcomes: List[Outcome] = field(default_factory=list)


@dataclass(frozen=True)
class ProcessingUnavailable:
    """The remote service cannot process anything in this deployment."""

    reason: str


RemoteBatchResponse = Union[BatchCompleted, ProcessingUnavailable]


def encode_data_url(payload: bytes, media_type: str) -> str:
    return f"data:{media_type};base64,{base64.b64encode(payload).decode('ascii')}"


def decode_data_url(data_url: str) -> bytes:
    """Decode ``data:<type>;base64,<data>`` (or bare base64) to bytes."""
    _, _, encoded = data_url.rpartition(",")
    return base64.b64decode(encoded, validate=True)


def build_batch_request(
    items: Sequence[IndexedItem],
    options: ProcessingOptions,
    batch_id: Optional[str] = None,
) -> Dict[str, Any]:
    """JSON body for one call to the batch endpoint."""
    return {
        "images": [
            {
                "imageData": encode_data_url(item.payload, item.media_type),
                "filename": item.name,
                "originalSize": item.size,
                "globalIndex": index,
            }
            for index, item in items
        ],
        "options": options.to_wire(),
        "batchId": batch_id,
    }


def _is_unavailable(payload: Any) -> bool:
    return isinstance(payload, dict) and bool(
        payload.get("fallbackToClient") or payload.get("developmentMode")
    )


def _media_type(fmt: Optional[str], options: ProcessingOptions) -> str:
    if not fmt:
        return options.media_type
    fmt = str(fmt).lower()
    return "image/jpeg" if fmt in ("jpg", "jpeg") else f"image/{fmt}"


def _resolve_index(
    entry: Dict[str, Any], items: Sequence[IndexedItem], taken: Dict[int, bool]
) -> IndexedItem:
    by_index = dict(items)
    global_index = entry.get("globalIndex")
    if global_index is not None:
        index = int(global_index)
        if index not in by_index:
            raise RemoteProtocolError(f"Unknown globalIndex {index} in response")
    else:
        # Older deployments only echo the filename.
        candidates = [i for i, item in items if item.name == entry.get("filename") and i not in taken]
        if not candidates:
            raise RemoteProtocolError(f"Cannot match result for {entry.get('filename')!r}")
        index = candidates[0]
    if index in taken:
        raise RemoteProtocolError(f"Duplicate result for index {index}")
    taken[index] = True
    return index, by_index[index]


def parse_batch_response(
    payload: Any, items: Sequence[IndexedItem], options: ProcessingOptions
) -> RemoteBatchResponse:
    """
    Turn a batch endpoint response into a typed result.

    Raises:
        RemoteTransportError: the service reported a batch-level failure
        RemoteProtocolError: the payload is malformed or does not cover the chunk
    """
    with remote_error_boundary(BATCH_ENDPOINT):
        if not isinstance(payload, dict):
            raise RemoteProtocolError("Expected a JSON object from the batch endpoint")
        if _is_unavailable(payload):
            return ProcessingUnavailable(
                reason=payload.get("error") or payload.get("message") or "Remote processing unavailable"
            )
        if not payload.get("success"):
            raise RemoteTransportError(payload.get("error") or "Batch processing failed")

        results = payload["results"]
        if not isinstance(results, list):
            raise RemoteProtocolError("'results' must be a list")

        taken: Dict[int, bool] = {}
        outcomes: List[Outcome] = []
        for entry in results:
            index, item = _resolve_index(entry, items, taken)
            if entry.get("success"):
                result = entry["result"]
                resized = ResizedImage(
                    original_size=int(result["originalSize"]),
                    new_size=int(result["newSize"]),
                    original_dimensions=Dimensions(**result["originalDimensions"]),
                    new_dimensions=Dimensions(**result["newDimensions"]),
                    encoded_payload=decode_data_url(result["imageData"]),
                    media_type=_media_type(result.get("format"), options),
                )
                outcomes.append(Success.from_resized(index, item.name, resized))
            else:
                outcomes.append(
                    Failure(
                        index=index,
                        name=item.name,
                        reason=entry.get("error") or "Remote processing failed",
                    )
                )

        if len(taken) != len(items):
            missing = sorted(set(dict(items)) - set(taken))
            raise RemoteProtocolError(f"Response is missing results for indexes {missing}")
        return BatchCompleted(outcomes=outcomes)


class RemoteResizeClient:
    """aiohttp client for the remote batch endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger("remote")

    @property
    def batch_url(self) -> str:
        return f"{self.base_url}/{BATCH_ENDPOINT}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "RemoteResizeClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def process_batch(
        self,
        items: Sequence[IndexedItem],
        options: ProcessingOptions,
        batch_id: Optional[str] = None,
    ) -> RemoteBatchResponse:
        """
        Send one chunk of at most ten items.

        Raises:
            RemoteTransportError: network error, timeout or error status
            RemoteProtocolError: unreadable response body
        """
        if not items:
            return BatchCompleted()
        if len(items) > MAX_REMOTE_BATCH_SIZE:
            raise ValueError(
                f"Batch size too large: {len(items)} (max {MAX_REMOTE_BATCH_SIZE} per call)"
            )

        body = build_batch_request(items, options, batch_id)
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        self._logger.debug(f"[{batch_id}] Sending {len(items)} images to {self.batch_url}")

        try:
            async with self._get_session().post(self.batch_url, json=body, timeout=timeout) as response:
                status = response.status
                try:
                    payload = await response.json(content_type=None)
                except ValueError as exc:
                    if status >= 400:
                        raise RemoteTransportError(f"HTTP {status} from batch endpoint") from exc
                    raise RemoteProtocolError(f"Batch endpoint returned invalid JSON: {exc}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise RemoteTransportError(f"Remote batch request failed: {exc}") from exc

        if status >= 400 and not _is_unavailable(payload):
            error = payload.get("error") if isinstance(payload, dict) else None
            raise RemoteTransportError(f"HTTP {status} from batch endpoint: {error or 'request failed'}")

        response_data = parse_batch_response(payload, items, options)
        self._logger.debug(f"[{batch_id}] Remote batch answered with {type(response_data).__name__}")
        return response_data


class RemoteBatchRunner:
    """Runs a whole batch against the remote capability, ten items per call."""

    def __init__(
        self,
        transport: RemoteBatchTransport,
        executor: Optional[ChunkedExecutor] = None,
        batch_size: int = MAX_REMOTE_BATCH_SIZE,
    ):
        self.transport = transport
        self.executor = executor or ChunkedExecutor(yield_interval=0.1, name="Remote resize batch")
        self.batch_size = max(1, min(batch_size, MAX_REMOTE_BATCH_SIZE))

    async def run(
        self,
        items: Sequence[WorkItem],
        options: ProcessingOptions,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationTokenProtocol] = None,
    ) -> List[Outcome]:
        """
        Raises:
            RemoteTransportError, RemoteProtocolError: a chunk could not be sent
                or understood
            RemoteUnavailableError: the service asked for local processing
        """
        get_logger("remote").info(
            f"Processing {len(items)} images remotely in calls of {self.batch_size}"
        )

        async def chunk_processor(chunk: Sequence[IndexedItem]) -> List[Outcome]:
            batch_id = f"batch_{chunk[0][0] // self.batch_size}_{int(time.time() * 1000)}"
            response = await self.transport.process_batch(chunk, options, batch_id)
            if isinstance(response, ProcessingUnavailable):
                raise RemoteUnavailableError(response.reason)
            return response.outcomes

        return await self.executor.run_batched(
            items,
            self.batch_size,
            chunk_processor,
            on_progress=on_progress,
            cancel_token=cancel_token,
        )

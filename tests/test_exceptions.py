import pytest

from resize_pipeline.core.exceptions import (
    BatchCancelledError,
    ConfigurationError,
    ItemProcessingError,
    RemoteError,
    RemoteProtocolError,
    RemoteTransportError,
    RemoteUnavailableError,
    ResizePipelineError,
    StorageError,
    remote_error_boundary,
)


@pytest.mark.parametrize(
    "error_cls",
    [ConfigurationError, ItemProcessingError, StorageError, RemoteError, BatchCancelledError],
)
def test_all_errors_share_base(error_cls) -> None:
    assert issubclass(error_cls, ResizePipelineError)


@pytest.mark.parametrize(
    "error_cls", [RemoteTransportError, RemoteProtocolError, RemoteUnavailableError]
)
def test_remote_errors_trigger_fallback(error_cls) -> None:
    assert issubclass(error_cls, RemoteError)


def test_batch_cancelled_error_message() -> None:
    error = BatchCancelledError(4, 10)

    assert str(error) == "Batch cancelled after 4/10 items"
    assert error.completed == 4


@pytest.mark.parametrize("raised", [KeyError("results"), TypeError("bad"), ValueError("bad"), AttributeError("get")])
def test_remote_error_boundary_maps_malformed_payload(raised) -> None:
    with pytest.raises(RemoteProtocolError, match="batch-processor: malformed response") as excinfo:
        with remote_error_boundary("batch-processor"):
            raise raised

    assert excinfo.value.__cause__ is raised


def test_remote_error_boundary_keeps_pipeline_errors() -> None:
    with pytest.raises(RemoteTransportError):
        with remote_error_boundary("batch-processor"):
            raise RemoteTransportError("HTTP 500")

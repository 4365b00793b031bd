# src/resize_pipeline/core/error_handling.py

import functools
import time
from typing import Dict, List

from botocore.exceptions import BotoCoreError, ClientError
from PIL import UnidentifiedImageError

from .exceptions import ItemProcessingError, ResizePipelineError, StorageError
from .logging_config import get_logger

RETRYABLE_S3_ERROR_CODES = (
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "SlowDown",
    "RequestTimeout",
    "InternalError",
)


def _logger_for(func):
    # "storage.read_object" under the pipeline logger
    module = func.__module__.rpartition(".")[2]
    return get_logger(f"{module}.{func.__name__}")


def with_error_handling(func):
    """
    Log failures of ``func`` with a traceback and map third-party errors
    onto the pipeline's exception types.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = _logger_for(func)
        try:
            return func(*args, **kwargs)
        except ResizePipelineError:
            logger.error(f"Error in '{func.__name__}'", exc_info=True)
            raise
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error in '{func.__name__}': {e}", exc_info=True)
            raise StorageError(f"S3 operation failed in {func.__name__}: {e}") from e
        except UnidentifiedImageError as e:
            logger.error(f"Error in '{func.__name__}': {e}", exc_info=True)
            raise ItemProcessingError(f"Failed to identify image: {e}") from e
        except OSError as e:
            logger.error(f"Error in '{func.__name__}': {e}", exc_info=True)
            raise StorageError(f"I/O failed in {func.__name__}: {e}") from e
    return wrapper


def _is_retryable(error: StorageError) -> bool:
    cause = error.__cause__
    if isinstance(cause, ClientError):
        code = cause.response.get("Error", {}).get("Code")
        return code in RETRYABLE_S3_ERROR_CODES
    return isinstance(cause, BotoCoreError)


def retry_s3_operation(max_attempts=3, initial_delay=1, backoff_factor=2):
    """
    Retry an S3 operation wrapped by ``with_error_handling`` with
    exponential backoff. Only throttling / transient errors are retried.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = _logger_for(func)
            delay = initial_delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except StorageError as e:
                    if not _is_retryable(e):
                        logger.error(f"S3 operation '{func.__name__}' failed with non-retryable error: {e}")
                        raise
                    if attempt >= max_attempts:
                        logger.error(
                            f"S3 operation '{func.__name__}' failed after {max_attempts} attempts. Error: {e}"
                        )
                        raise
                    logger.info(
                        f"S3 operation '{func.__name__}' failed. Attempt {attempt}/{max_attempts}. "
                        f"Retrying in {delay:.2f}s. Error: {e}"
                    )
                    time.sleep(delay)
                    delay *= backoff_factor
            raise StorageError(f"S3 operation '{func.__name__}' failed after {max_attempts} attempts")
        return wrapper
    return decorator


class BatchOperationContextManager:
    """
    Context manager for batch runs to collect and summarize item errors.
    """
    def __init__(self, operation_name="Batch Operation"):
        self.operation_name = operation_name
        self.errors: List[Dict[str, str]] = []
        self.logger = get_logger("batch")

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.logger.error(
                f"{self.operation_name} aborted: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        elif self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} failed item(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Failure {i+1}/{len(self.errors)} for item '{error_detail['item']}': {error_detail['error']}"
                )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")
        # Never suppress: dispatch errors must reach the caller.
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item"):
        """Record a failed item inside the ``with`` block."""
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}")

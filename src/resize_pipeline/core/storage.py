"""Loading work items from, and writing resized images to, S3 or a directory."""

from pathlib import Path
from typing import Any, List, Optional, Sequence, Set, Tuple

import boto3

from .error_handling import retry_s3_operation, with_error_handling
from .logging_config import get_logger
from .models import MAX_FILES, Outcome, Success, WorkItem
from .protocols import S3ClientProtocol
from .validation import generate_output_filename

MEDIA_TYPES_BY_EXTENSION = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
}

logger = get_logger("storage")


def media_type_for(name: str) -> Optional[str]:
    """Media type implied by a file name's extension, or None if not an image."""
    return MEDIA_TYPES_BY_EXTENSION.get(Path(name).suffix.lower())


def output_name_for(outcome: Success, suffix: str = "_resized") -> str:
    """``holiday.png`` resized to webp becomes ``holiday_resized.webp``."""
    extension = outcome.media_type.partition("/")[2]
    return generate_output_filename(Path(outcome.name).name, suffix, extension)


def _named_successes(outcomes: Sequence[Outcome], suffix: str) -> List[Tuple[Success, str]]:
    """
    Pair each success with an output name that is unique within the batch.

    ``a.png`` and ``a.jpg`` both map to ``a_resized.jpeg``; the later one
    becomes ``a_resized_<index>.jpeg``.
    """
    taken: Set[str] = set()
    named = []
    for outcome in outcomes:
        if not isinstance(outcome, Success):
            continue
        name = output_name_for(outcome, suffix)
        attempt = 0
        while name in taken:
            tag = f"_{outcome.index}" if attempt == 0 else f"_{outcome.index}_{attempt}"
            name = output_name_for(outcome, f"{suffix}{tag}")
            attempt += 1
        if attempt:
            logger.warning(f"Output name collision for {outcome.name}; writing {name}")
        taken.add(name)
        named.append((outcome, name))
    return named


def create_s3_client(**kwargs: Any) -> S3ClientProtocol:
    """Create an S3 client from the default boto3 session."""
    session = boto3.Session()
    return session.client("s3", **kwargs)  # type: ignore


@retry_s3_operation()
@with_error_handling
def list_image_keys(s3_client: S3ClientProtocol, bucket: str, prefix: str = "") -> List[str]:
    """List keys under ``prefix`` whose extension is a supported image type."""
    list_prefix = prefix
    if prefix and not prefix.endswith("/"):
        list_prefix = prefix + "/"

    logger.debug(f"Discovering images in s3://{bucket}/{list_prefix}")
    keys = []
    paginator = s3_client.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=bucket, Prefix=list_prefix):
        for obj in page.get("Contents", []):
            key = obj["Key"]
            if not key.endswith("/") and media_type_for(key):
                keys.append(key)
    logger.info(f"Found {len(keys)} images in s3://{bucket}/{list_prefix}")
    return keys


@retry_s3_operation()
@with_error_handling
def read_object(s3_client: S3ClientProtocol, bucket: str, key: str) -> bytes:
    response = s3_client.get_object(Bucket=bucket, Key=key)
    return response["Body"].read()


@retry_s3_operation()
@with_error_handling
def write_object(
    s3_client: S3ClientProtocol, bucket: str, key: str, body: bytes, content_type: str
) -> None:
    s3_client.put_object(Bucket=bucket, Key=key, Body=body, ContentType=content_type)


def load_items_from_s3(
    s3_client: S3ClientProtocol, bucket: str, prefix: str = "", limit: int = MAX_FILES
) -> List[WorkItem]:
    """Download up to ``limit`` images under ``prefix`` as work items."""
    keys = list_image_keys(s3_client, bucket, prefix)[:limit]
    return [
        WorkItem.from_bytes(
            Path(key).name, read_object(s3_client, bucket, key), media_type_for(key)
        )
        for key in keys
    ]


@with_error_handling
def load_items_from_directory(directory: str, limit: int = MAX_FILES) -> List[WorkItem]:
    """Read up to ``limit`` images from ``directory`` in name order (not recursive)."""
    root = Path(directory)
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")

    paths = sorted(p for p in root.iterdir() if p.is_file() and media_type_for(p.name))
    items = [
        WorkItem.from_bytes(path.name, path.read_bytes(), media_type_for(path.name))
        for path in paths[:limit]
    ]
    logger.info(f"Loaded {len(items)} images from {directory}")
    return items


@with_error_handling
def save_outcomes_to_directory(
    outcomes: Sequence[Outcome], directory: str, suffix: str = "_resized"
) -> List[str]:
    """Write every successful outcome to ``directory``; failures are skipped."""
    root = Path(directory)
    root.mkdir(parents=True, exist_ok=True)
    written = []
    for outcome, name in _named_successes(outcomes, suffix):
        path = root / name
        path.write_bytes(outcome.encoded_payload)
        written.append(str(path))
    logger.info(f"Wrote {len(written)} images to {directory}")
    return written


def save_outcomes_to_s3(
    s3_client: S3ClientProtocol,
    outcomes: Sequence[Outcome],
    bucket: str,
    prefix: str = "",
    suffix: str = "_resized",
) -> List[str]:
    """Upload every successful outcome under ``prefix``; failures are skipped."""
    keys = []
    for outcome, name in _named_successes(outcomes, suffix):
        key = f"{prefix.rstrip('/')}/{name}" if prefix else name
        write_object(s3_client, bucket, key, outcome.encoded_payload, outcome.media_type)
        keys.append(key)
    logger.info(f"Uploaded {len(keys)} images to s3://{bucket}/{prefix}")
    return keys

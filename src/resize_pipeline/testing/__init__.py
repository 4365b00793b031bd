"""Testing utilities and fakes for the resize pipeline."""

from .fakes import (
    FakeClientSession,
    FakeRemoteClient,
    FakeResponse,
    FakeS3Client,
    S3Bucket,
    S3Object,
    StaticHealthProbe,
    create_test_image,
    make_work_item,
    setup_test_s3_environment,
)

__all__ = [
    "FakeClientSession",
    "FakeRemoteClient",
    "FakeResponse",
    "FakeS3Client",
    "S3Bucket",
    "S3Object",
    "StaticHealthProbe",
    "create_test_image",
    "make_work_item",
    "setup_test_s3_environment",
]

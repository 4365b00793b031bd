"""Runtime settings for the resize pipeline."""

import os
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

# Hard limit of items per remote call.
MAX_REMOTE_BATCH_SIZE = 10


class PipelineSettings(BaseModel):
    """Deployment-level settings; per-batch choices live in ProcessingOptions."""

    remote_url: Optional[str] = None
    health_timeout_seconds: float = Field(default=5.0, gt=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    local_yield_interval: float = Field(default=0.01, ge=0)
    remote_yield_interval: float = Field(default=0.1, ge=0)
    max_concurrency: int = MAX_REMOTE_BATCH_SIZE

    @field_validator("remote_url")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip().rstrip("/")

    @field_validator("max_concurrency")
    @classmethod
    def _clamp_concurrency(cls, value: int) -> int:
        return max(1, min(MAX_REMOTE_BATCH_SIZE, value))

    @property
    def remote_enabled(self) -> bool:
        return self.remote_url is not None

    @classmethod
    def from_env(cls, **overrides) -> "PipelineSettings":
        """
        Build settings from environment variables.

        Environment Variables:
            RESIZE_REMOTE_URL: Base URL of the remote resize service
            RESIZE_HEALTH_TIMEOUT: Health probe timeout in seconds
            RESIZE_REQUEST_TIMEOUT: Remote batch request timeout in seconds
            RESIZE_LOCAL_YIELD: Pause between local chunks in seconds
            RESIZE_REMOTE_YIELD: Pause between remote chunks in seconds
            RESIZE_MAX_CONCURRENCY: Upper bound on local chunk size

        Keyword overrides that are not None win over the environment.
        """
        env_map = {
            "remote_url": "RESIZE_REMOTE_URL",
            "health_timeout_seconds": "RESIZE_HEALTH_TIMEOUT",
            "request_timeout_seconds": "RESIZE_REQUEST_TIMEOUT",
            "local_yield_interval": "RESIZE_LOCAL_YIELD",
            "remote_yield_interval": "RESIZE_REMOTE_YIELD",
            "max_concurrency": "RESIZE_MAX_CONCURRENCY",
        }
        values = {
            field: os.environ[var] for field, var in env_map.items() if var in os.environ
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid pipeline settings: {exc}") from exc

"""Configuration models for the sink and the command-line shipper."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, field_validator

__all__ = [
    "ENDPOINT_URL_ENV",
    "SinkConfig",
    "ShipperOptions",
]

ENDPOINT_URL_ENV = "CLOUDWATCHLOGS_ENDPOINT_URL"


# ---------------------------------------------------------------------------
# SinkConfig
# ---------------------------------------------------------------------------


class SinkConfig(BaseModel):
    """Destination identity and batching policy, fixed for a sink's lifetime.

    ``batch_size`` is the number of buffered events the sink tolerates before
    flushing (the flush happens once the buffer *exceeds* it).
    ``flush_interval`` is in seconds. With neither set every record is
    flushed as soon as it is accepted.
    """

    model_config = ConfigDict(frozen=True)

    group_name: str = Field(min_length=1)
    stream_name: str = Field(min_length=1)
    batch_size: PositiveInt | None = None
    flush_interval: PositiveFloat | None = None

    @property
    def immediate(self) -> bool:
        return self.batch_size is None and self.flush_interval is None


# ---------------------------------------------------------------------------
# ShipperOptions
# ---------------------------------------------------------------------------


class ShipperOptions(BaseModel):
    """Everything the command line can set, before it is split into AWS and sink settings."""

    model_config = ConfigDict(frozen=True)

    access_key_id: str | None = None
    secret_access_key: str | None = None
    region: str | None = None
    endpoint_url: str | None = Field(default_factory=lambda: os.environ.get(ENDPOINT_URL_ENV) or None)
    group_name: str | None = None
    stream_name: str | None = None
    batch_size: PositiveInt | None = None
    flush_interval: PositiveFloat | None = None

    @field_validator("access_key_id", "secret_access_key", "region", "group_name", "stream_name")
    @classmethod
    def _blank_is_unset(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    def has_identity(self) -> bool:
        """True when at least one identifying flag was supplied."""
        return any(
            (
                self.access_key_id,
                self.secret_access_key,
                self.region,
                self.group_name,
                self.stream_name,
            )
        )

    def sink_config(self) -> SinkConfig:
        # Raises pydantic.ValidationError when group or stream is missing.
        return SinkConfig(
            group_name=self.group_name or "",
            stream_name=self.stream_name or "",
            batch_size=self.batch_size,
            flush_interval=self.flush_interval,
        )

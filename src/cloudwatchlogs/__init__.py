"""cloudwatchlogs: ship standard input to AWS CloudWatch Logs in ordered batches."""

from .destination import CloudWatchLogsDestination, LogDestination
from .errors import (
    FlushError,
    ProvisioningError,
    ShipperError,
    SinkClosedError,
    UsageError,
)
from .events import LogEvent
from .sinks import BatchingLogSink, SinkState, pump_lines
from .time_utils import now_ms
from .types import ShipperOptions, SinkConfig

__all__ = [
    # sinks
    "BatchingLogSink",
    "SinkState",
    "pump_lines",
    # destinations
    "CloudWatchLogsDestination",
    "LogDestination",
    # types
    "LogEvent",
    "ShipperOptions",
    "SinkConfig",
    # errors
    "FlushError",
    "ProvisioningError",
    "ShipperError",
    "SinkClosedError",
    "UsageError",
    # utils
    "now_ms",
]

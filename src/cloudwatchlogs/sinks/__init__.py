from .batching import BatchingLogSink, SinkState
from .stream import pump_lines

__all__ = ["BatchingLogSink", "SinkState", "pump_lines"]

"""Time helpers."""

from __future__ import annotations

import time


def now_ms() -> int:
    """Milliseconds since the Unix epoch, the unit CloudWatch Logs timestamps use."""
    return time.time_ns() // 1_000_000

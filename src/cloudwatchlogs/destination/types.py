"""Log destination interface consumed by the batching sink."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..events import LogEvent


class LogDestination(ABC):
    """A remote log service addressed by group and stream.

    Every method raises on failure; the sink wraps what it gets into
    ``ProvisioningError`` or ``FlushError``. ``close`` is an optional no-op.
    """

    @abstractmethod
    async def ensure_group(self, group_name: str) -> None:
        """Create the log group unless it already exists."""

    @abstractmethod
    async def ensure_stream(self, group_name: str, stream_name: str) -> str | None:
        """Create the log stream unless it already exists and return its sequence token."""

    @abstractmethod
    async def put_events(
        self,
        group_name: str,
        stream_name: str,
        sequence_token: str | None,
        events: Sequence[LogEvent],
    ) -> str | None:
        """Write ``events`` in order and return the next sequence token."""

    async def close(self) -> None:
        """Release resources."""

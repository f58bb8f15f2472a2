"""Log event model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .time_utils import now_ms


class LogEvent(BaseModel):
    """One input record, stamped with the time it was accepted."""

    model_config = ConfigDict(frozen=True)

    message: str
    timestamp: int = Field(ge=0)

    @classmethod
    def capture(cls, record: str | bytes) -> LogEvent:
        if isinstance(record, (bytes, bytearray)):
            message = bytes(record).decode("utf-8", errors="replace")
        else:
            message = str(record)
        return cls(message=message, timestamp=now_ms())

    def to_wire(self) -> dict[str, str | int]:
        """Shape expected by ``PutLogEvents``."""
        return {"timestamp": self.timestamp, "message": self.message}

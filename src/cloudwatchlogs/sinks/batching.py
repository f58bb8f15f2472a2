"""Batching sink: buffers records and flushes them to a log destination."""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..errors import FlushError, ProvisioningError, SinkClosedError, error_code
from ..events import LogEvent

if TYPE_CHECKING:
    from ..destination.types import LogDestination
    from ..types import SinkConfig

logger = logging.getLogger("cloudwatchlogs")

ErrorListener = Callable[[BaseException], None]
CloseListener = Callable[[], None]


class SinkState(str, enum.Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


class BatchingLogSink:
    """Buffers log events and writes them to one log stream in order.

    A flush is triggered immediately (no batching configured), once the
    unsent buffer exceeds ``batch_size``, or when the flush timer fires.
    Only one ``put_events`` call is outstanding at a time; requests made while
    one is in flight are coalesced into a single follow-up flush.

    ``accept`` is synchronous and never raises. Asynchronous failures are
    reported to listeners registered with ``on_error``.
    """

    def __init__(self, destination: LogDestination, config: SinkConfig) -> None:
        self._destination = destination
        self._config = config

        self._state = SinkState.PENDING
        self._buffer: list[LogEvent] = []
        self._in_flight = 0
        self._sequence_token: str | None = None
        self._provisioning_error: ProvisioningError | None = None

        self._init_task: asyncio.Task[None] | None = None
        self._flush_task: asyncio.Task[FlushError | None] | None = None
        self._flush_requested = False
        self._timer: asyncio.TimerHandle | None = None

        self._error_listeners: list[ErrorListener] = []
        self._close_listeners: list[CloseListener] = []

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    async def open(
        cls,
        destination: LogDestination,
        config: SinkConfig,
        *,
        on_error: ErrorListener | None = None,
        on_close: CloseListener | None = None,
    ) -> BatchingLogSink:
        """Create and start a sink. Provisioning continues in the background."""
        sink = cls(destination, config)
        if on_error is not None:
            sink.on_error(on_error)
        if on_close is not None:
            sink.on_close(on_close)
        sink.start()
        return sink

    def start(self) -> None:
        """Schedule group/stream provisioning on the running event loop."""
        if self._init_task is not None:
            return
        logger.debug("[cloudwatchlogs] Starting sink with %r", self._config)
        self._init_task = asyncio.ensure_future(self._provision())

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def on_error(self, listener: ErrorListener) -> None:
        self._error_listeners.append(listener)

    def on_close(self, listener: CloseListener) -> None:
        self._close_listeners.append(listener)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def config(self) -> SinkConfig:
        return self._config

    @property
    def state(self) -> SinkState:
        return self._state

    @property
    def sequence_token(self) -> str | None:
        return self._sequence_token

    @property
    def buffered(self) -> list[LogEvent]:
        """Snapshot of the events not yet confirmed by the destination."""
        return list(self._buffer)

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def ready(self) -> None:
        """Wait until the log stream is provisioned.

        Raises ``ProvisioningError`` if provisioning failed and
        ``SinkClosedError`` if the sink was destroyed first.
        """
        if self._init_task is None:
            raise RuntimeError("sink has not been started")
        try:
            await asyncio.shield(self._init_task)
        except asyncio.CancelledError:
            if self._init_task.cancelled():
                raise SinkClosedError("sink was destroyed before it became ready") from None
            raise
        if self._provisioning_error is not None:
            raise self._provisioning_error
        if self._state is SinkState.CLOSED:
            raise SinkClosedError("sink is closed")

    def accept(self, record: str | bytes) -> None:
        """Buffer one record and flush if the batching policy says so."""
        if self._state in (SinkState.FAILED, SinkState.CLOSED):
            logger.debug("[cloudwatchlogs] Dropping record, sink is %s", self._state.value)
            return

        self._buffer.append(LogEvent.capture(record))

        # While pending, records queue up and are looked at once ready.
        if self._state is SinkState.READY and self._flush_due():
            self._request_flush()

    async def flush(self) -> None:
        """Flush everything accepted so far.

        Returns once the destination confirmed the batch. Raises
        ``FlushError`` when it did not; the events stay buffered.
        """
        await self.ready()
        error = await asyncio.shield(self._request_flush())
        if error is not None:
            raise error
        if self._state is SinkState.CLOSED:
            raise SinkClosedError("sink was destroyed during flush")

    def destroy(self, error: BaseException | None = None) -> None:
        """Stop the sink without flushing. Buffered events are discarded."""
        if self._state is SinkState.CLOSED:
            return
        self._cancel_timer()
        if self._init_task is not None and not self._init_task.done():
            self._init_task.cancel()
        if error is not None:
            self._emit_error(error)
        self._state = SinkState.CLOSED
        dropped = len(self._buffer)
        self._buffer.clear()
        if dropped:
            logger.debug("[cloudwatchlogs] Destroyed with %d unsent event(s)", dropped)
        for listener in list(self._close_listeners):
            try:
                listener()
            except Exception as exc:
                logger.error("[cloudwatchlogs] Close listener error: %s", exc)

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    async def _provision(self) -> None:
        group, stream = self._config.group_name, self._config.stream_name
        try:
            await self._destination.ensure_group(group)
        except Exception as exc:
            self._fail(ProvisioningError(f"could not create log group {group!r}: {exc}", code=error_code(exc)), exc)
            return
        if self._state is SinkState.CLOSED:
            return
        try:
            token = await self._destination.ensure_stream(group, stream)
        except Exception as exc:
            self._fail(
                ProvisioningError(f"could not create log stream {group!r}/{stream!r}: {exc}", code=error_code(exc)),
                exc,
            )
            return
        if self._state is SinkState.CLOSED:
            return

        self._sequence_token = token
        self._state = SinkState.READY
        logger.debug(
            "[cloudwatchlogs] Stream %s/%s ready with %d queued event(s)",
            group,
            stream,
            len(self._buffer),
        )
        self._restart_timer()
        if self._buffer and self._flush_due():
            self._request_flush()

    def _fail(self, error: ProvisioningError, cause: Exception) -> None:
        if self._state is SinkState.CLOSED:
            return
        error.__cause__ = cause
        self._provisioning_error = error
        self._state = SinkState.FAILED
        self._buffer.clear()
        self._emit_error(error)

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    def _flush_due(self) -> bool:
        if self._config.immediate:
            return bool(self._unsent())
        batch_size = self._config.batch_size
        return batch_size is not None and self._unsent() > batch_size

    def _unsent(self) -> int:
        return len(self._buffer) - self._in_flight

    def _request_flush(self) -> asyncio.Task[FlushError | None]:
        if self._flush_task is not None and not self._flush_task.done():
            self._flush_requested = True
            return self._flush_task
        self._flush_task = asyncio.ensure_future(self._run_flushes())
        return self._flush_task

    async def _run_flushes(self) -> FlushError | None:
        while True:
            self._flush_requested = False
            error = await self._send_events()
            if not self._flush_requested or self._state is not SinkState.READY:
                return error

    async def _send_events(self) -> FlushError | None:
        self._cancel_timer()
        if self._state is not SinkState.READY:
            return None

        if not self._buffer:
            self._restart_timer()
            return None

        batch = list(self._buffer)
        token = self._sequence_token
        self._in_flight = len(batch)
        logger.debug("[cloudwatchlogs] Flushing %d event(s)", len(batch))
        try:
            next_token = await self._destination.put_events(
                self._config.group_name,
                self._config.stream_name,
                token,
                batch,
            )
        except Exception as exc:
            self._in_flight = 0
            if self._state is SinkState.CLOSED:
                return None
            error = FlushError(
                f"could not put {len(batch)} event(s) to "
                f"{self._config.group_name!r}/{self._config.stream_name!r}: {exc}",
                batch_size=len(batch),
                code=error_code(exc),
            )
            error.__cause__ = exc
            self._restart_timer()
            self._emit_error(error)
            return error

        self._in_flight = 0
        if self._state is SinkState.CLOSED:
            return None
        # Records accepted during the call sit behind the batch.
        del self._buffer[: len(batch)]
        self._sequence_token = next_token
        self._restart_timer()
        return None

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _restart_timer(self) -> None:
        self._cancel_timer()
        interval = self._config.flush_interval
        if interval is None or self._state is not SinkState.READY:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(interval, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self._state is SinkState.READY:
            self._request_flush()

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def _emit_error(self, error: BaseException) -> None:
        if not self._error_listeners:
            logger.error("[cloudwatchlogs] Unhandled sink error: %s", error)
            return
        for listener in list(self._error_listeners):
            try:
                listener(error)
            except Exception as exc:
                logger.error("[cloudwatchlogs] Error listener failed: %s", exc)

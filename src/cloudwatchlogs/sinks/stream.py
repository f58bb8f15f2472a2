"""Feed a blocking byte stream into a sink, one line per record."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, BinaryIO

from ..errors import FlushError, ShipperError

if TYPE_CHECKING:
    from .batching import BatchingLogSink

logger = logging.getLogger("cloudwatchlogs")

_EOF = None


def _deliver(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue, item: bytes | None) -> bool:
    try:
        loop.call_soon_threadsafe(queue.put_nowait, item)
    except RuntimeError:
        # Loop already closed.
        return False
    return True


def _read_lines(stream: BinaryIO, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> None:
    try:
        for line in iter(stream.readline, b""):
            if not _deliver(loop, queue, line):
                return
    except Exception as exc:
        logger.error("[cloudwatchlogs] Input read error: %s", exc)
    _deliver(loop, queue, _EOF)


async def pump_lines(stream: BinaryIO, sink: BatchingLogSink) -> int:
    """Accept every non-empty line of ``stream`` until EOF. Returns the record count.

    Reading happens on a daemon thread so a blocked ``readline`` never keeps
    the process alive after the loop is done with it. Without any batching
    configured, each record is flushed before the next line is taken, so
    every record goes out in its own batch.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[bytes | None] = asyncio.Queue()
    reader = threading.Thread(
        target=_read_lines,
        args=(stream, loop, queue),
        name="cloudwatchlogs-stdin",
        daemon=True,
    )
    reader.start()

    immediate = sink.config.immediate
    count = 0
    while True:
        line = await queue.get()
        if line is _EOF:
            break
        record = line.rstrip(b"\r\n")
        # CloudWatch rejects empty messages, which would wedge the buffer.
        if not record:
            continue
        sink.accept(record)
        count += 1
        if immediate:
            try:
                await sink.flush()
            except FlushError:
                # Reported on the error channel; the record stays buffered.
                continue
            except ShipperError:
                break
    logger.debug("[cloudwatchlogs] Input closed after %d record(s)", count)
    return count

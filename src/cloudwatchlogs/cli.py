"""cloudwatchlogs CLI: ship standard input to a CloudWatch Logs stream."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import BinaryIO, Optional

import typer
from pydantic import ValidationError

from .destination.cloudwatch import CloudWatchLogsDestination
from .destination.types import LogDestination
from .errors import FlushError, ProvisioningError, ShipperError, UsageError
from .sinks.batching import BatchingLogSink
from .sinks.stream import pump_lines
from .types import ShipperOptions

logger = logging.getLogger("cloudwatchlogs")

USAGE = (
    "Usage: cloudwatchlogs [-a ACCESS_KEY] [-s SECRET_KEY]\n"
    "                      [-r REGION] [-g GROUP_NAME] [-t STREAM_NAME]\n"
    "                      [-b BATCH_SIZE] [-o FLUSH_INTERVAL]"
)

app = typer.Typer(
    name="cloudwatchlogs",
    help="Ship lines from standard input to an AWS CloudWatch Logs stream.",
    add_completion=False,
)


def configure_logging(verbose: bool) -> None:
    """Log to stderr. ``DEBUG=cloudwatchlogs`` (or ``*``) also turns on debug output."""
    wanted = {name.strip() for name in os.environ.get("DEBUG", "").split(",")}
    level = logging.DEBUG if verbose or wanted & {"cloudwatchlogs", "*"} else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def resolve_options(**values: object) -> ShipperOptions:
    """Validate command-line values. Raises ``UsageError`` when no destination can be identified."""
    try:
        options = ShipperOptions(**values)
    except ValidationError as exc:
        raise UsageError(f"invalid options: {exc}") from exc
    if not options.has_identity():
        raise UsageError("no destination options given")
    if not options.group_name or not options.stream_name:
        raise UsageError("both a log group name (-g) and a log stream name (-t) are required")
    return options


async def ship(
    options: ShipperOptions,
    stream: BinaryIO,
    *,
    destination: LogDestination | None = None,
    fail_fast: bool = False,
) -> int:
    """Pump ``stream`` into a sink until EOF or a fatal error. Returns the exit status."""
    if destination is None:
        destination = CloudWatchLogsDestination.from_options(options)

    loop = asyncio.get_running_loop()
    fatal: asyncio.Future[ShipperError] = loop.create_future()

    def _on_error(error: BaseException) -> None:
        logger.error("[cloudwatchlogs] %s", error)
        if fatal.done():
            return
        if isinstance(error, ProvisioningError) or (fail_fast and isinstance(error, FlushError)):
            fatal.set_result(error)

    sink = await BatchingLogSink.open(destination, options.sink_config(), on_error=_on_error)
    pump = asyncio.ensure_future(pump_lines(stream, sink))
    try:
        await asyncio.wait({pump, fatal}, return_when=asyncio.FIRST_COMPLETED)
        if fatal.done():
            pump.cancel()
            return 1
        # End of input: one last attempt to deliver what is buffered.
        try:
            await sink.flush()
        except ShipperError:
            # Already reported through the error channel.
            return 1
        return 1 if fatal.done() else 0
    finally:
        sink.destroy()
        await destination.close()


@app.command()
def cloudwatchlogs(
    access_key_id: Optional[str] = typer.Option(None, "--access-key-id", "-a", help="AWS access key ID."),
    secret_access_key: Optional[str] = typer.Option(
        None, "--secret-access-key", "-s", help="AWS secret access key."
    ),
    region: Optional[str] = typer.Option(None, "--region", "-r", help="AWS region."),
    log_group_name: Optional[str] = typer.Option(None, "--log-group-name", "-g", help="Log group name."),
    log_stream_name: Optional[str] = typer.Option(None, "--log-stream-name", "-t", help="Log stream name."),
    batch_size: Optional[int] = typer.Option(
        None,
        "--batch-size",
        "--bulk-index",
        "-b",
        help="Flush once more than this many events are buffered.",
    ),
    flush_interval: Optional[float] = typer.Option(
        None,
        "--flush-interval",
        "--timeout",
        "-o",
        help="Flush buffered events every N seconds.",
    ),
    endpoint_url: Optional[str] = typer.Option(
        None, "--endpoint-url", help="Alternate CloudWatch Logs endpoint."
    ),
    fail_fast: bool = typer.Option(False, "--fail-fast", help="Exit on the first failed flush."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr."),
) -> None:
    """Read lines from standard input and send them to CloudWatch Logs."""
    configure_logging(verbose)

    values: dict[str, object] = {
        "access_key_id": access_key_id,
        "secret_access_key": secret_access_key,
        "region": region,
        "group_name": log_group_name,
        "stream_name": log_stream_name,
        "batch_size": batch_size,
        "flush_interval": flush_interval,
    }
    if endpoint_url:
        values["endpoint_url"] = endpoint_url
    try:
        options = resolve_options(**values)
    except UsageError as exc:
        typer.echo(USAGE)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    status = asyncio.run(ship(options, typer.get_binary_stream("stdin"), fail_fast=fail_fast))
    if status:
        raise typer.Exit(status)


def main() -> None:
    """Entry point for the cloudwatchlogs CLI."""
    app()

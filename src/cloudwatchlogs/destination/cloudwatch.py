"""AWS CloudWatch Logs destination backed by boto3."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import ClientError

from ..errors import error_code
from .types import LogDestination

if TYPE_CHECKING:
    from ..events import LogEvent
    from ..types import ShipperOptions

logger = logging.getLogger("cloudwatchlogs")

_ALREADY_EXISTS = "ResourceAlreadyExistsException"


class CloudWatchLogsDestination(LogDestination):
    """Talks to CloudWatch Logs through a boto3 ``logs`` client.

    boto3 calls block, so each one runs in a worker thread; callers only ever
    await them from the event loop.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_options(cls, options: ShipperOptions) -> CloudWatchLogsDestination:
        """Build a client from explicit credentials, falling back to boto3's own chain."""
        session = boto3.session.Session(
            aws_access_key_id=options.access_key_id,
            aws_secret_access_key=options.secret_access_key,
            region_name=options.region,
        )
        return cls(session.client("logs", endpoint_url=options.endpoint_url))

    # ------------------------------------------------------------------
    # LogDestination interface
    # ------------------------------------------------------------------

    async def ensure_group(self, group_name: str) -> None:
        try:
            await asyncio.to_thread(self._client.create_log_group, logGroupName=group_name)
            logger.debug("[cloudwatchlogs] Created log group %s", group_name)
        except ClientError as exc:
            if error_code(exc) != _ALREADY_EXISTS:
                raise
            logger.debug("[cloudwatchlogs] Log group %s already exists", group_name)

    async def ensure_stream(self, group_name: str, stream_name: str) -> str | None:
        try:
            await asyncio.to_thread(
                self._client.create_log_stream,
                logGroupName=group_name,
                logStreamName=stream_name,
            )
            logger.debug("[cloudwatchlogs] Created log stream %s/%s", group_name, stream_name)
            return None
        except ClientError as exc:
            if error_code(exc) != _ALREADY_EXISTS:
                raise
        return await self._upload_sequence_token(group_name, stream_name)

    async def put_events(
        self,
        group_name: str,
        stream_name: str,
        sequence_token: str | None,
        events: Sequence[LogEvent],
    ) -> str | None:
        params: dict[str, Any] = {
            "logGroupName": group_name,
            "logStreamName": stream_name,
            "logEvents": [event.to_wire() for event in events],
        }
        if sequence_token:
            params["sequenceToken"] = sequence_token

        resp = await asyncio.to_thread(self._client.put_log_events, **params)

        rejected = resp.get("rejectedLogEventsInfo")
        if rejected:
            logger.warning("[cloudwatchlogs] Some log events were rejected: %s", rejected)
        return resp.get("nextSequenceToken")

    async def close(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _upload_sequence_token(self, group_name: str, stream_name: str) -> str | None:
        resp = await asyncio.to_thread(
            self._client.describe_log_streams,
            logGroupName=group_name,
            logStreamNamePrefix=stream_name,
        )
        for stream in resp.get("logStreams", []):
            if stream.get("logStreamName") == stream_name:
                return stream.get("uploadSequenceToken")
        return None

"""Error types raised and reported by the log shipper."""

from __future__ import annotations


class ShipperError(Exception):
    """Base class for every error the shipper raises or reports."""


class UsageError(ShipperError):
    """Not enough (or invalid) configuration to identify a destination."""


class ProvisioningError(ShipperError):
    """Creating the log group or log stream failed. Fatal to the sink."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class FlushError(ShipperError):
    """Submitting a batch failed. The buffered events and the token are kept."""

    def __init__(self, message: str, *, batch_size: int, code: str | None = None) -> None:
        super().__init__(message)
        self.batch_size = batch_size
        self.code = code


class SinkClosedError(ShipperError):
    """The sink was destroyed."""


def error_code(exc: BaseException) -> str | None:
    """Return the AWS error code carried by a botocore ``ClientError``, if any."""
    response = getattr(exc, "response", None)
    if isinstance(response, dict):
        return response.get("Error", {}).get("Code")
    return None

from .cloudwatch import CloudWatchLogsDestination
from .types import LogDestination

__all__ = ["CloudWatchLogsDestination", "LogDestination"]

"""Status reporting for refresh runs.

A sink is any callable taking ``(message, severity)``. Delivery belongs to the
caller; the reporter only guarantees that a failing sink never breaks a run.
"""
import enum
import json
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Severity(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


StatusSink = Callable[[str, Severity], None]

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


def log_status(message: str, severity: Severity) -> None:
    logger.log(_LOG_LEVELS.get(severity, logging.INFO), message)


class RedisStatusSink:
    """Publishes status events as JSON on a redis pub/sub channel."""

    def __init__(self, redis_conn, channel: str, provider_id: Optional[int] = None):
        self.redis_conn = redis_conn
        self.channel = channel
        self.provider_id = provider_id

    def __call__(self, message: str, severity: Severity) -> None:
        payload = {
            "provider_id": self.provider_id,
            "message": message,
            "severity": Severity(severity).value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        self.redis_conn.publish(self.channel, json.dumps(payload))


class StatusReporter:
    def __init__(self, sink: Optional[StatusSink] = None):
        self.sink = sink or log_status

    def __call__(self, message: str, severity: Severity = Severity.INFO) -> None:
        try:
            self.sink(message, severity)
        except Exception as e:
            # Sink delivery is fire-and-forget
            logger.warning(f"Status sink failed for '{message}': {e}")

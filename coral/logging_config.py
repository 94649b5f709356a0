"""Centralized logging config for coral. Logs go to stderr in UTC ISO8601."""
import logging
import sys
from datetime import datetime, timezone
from typing import Any

LOG_FORMAT = "%(asctime)s.%(msecs)03dZ [%(levelname)s] %(name)s: %(message)s"
DATE_FMT = "%Y-%m-%dT%H:%M:%S"


class UTCTimeFormatter(logging.Formatter):
    """Use UTC for log timestamps."""

    def formatTime(self, record, datefmt=None):
        ct = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return ct.strftime(datefmt or self.default_time_format)


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger. Call once per process."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not root.handlers:
        h = logging.StreamHandler(sys.stderr)
        h.setFormatter(UTCTimeFormatter(LOG_FORMAT, datefmt=DATE_FMT))
        root.addHandler(h)
    # Reduce noisy lib logs
    for name in ("botocore", "aiobotocore", "aioboto3", "urllib3", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


class RequestLogger(logging.LoggerAdapter):
    """Prefix every message with the invocation's request id."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        return f"[{self.extra['req_id']}] {msg}", kwargs


def request_logger(logger: logging.Logger, req_id: str) -> RequestLogger:
    return RequestLogger(logger, {"req_id": req_id})

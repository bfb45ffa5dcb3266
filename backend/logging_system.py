"""
Vice City - Logging setup

Standard-library logging with request correlation: the HTTP middleware binds a
RequestContext to a context variable and every log record emitted while the
request is handled carries its correlation id. A bounded in-memory buffer
keeps recent warnings from the store layer for the admin status endpoint.
"""

import contextvars
import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s [cid=%(correlation_id)s] %(message)s"


@dataclass
class RequestContext:
    """Context for request tracing"""
    request_id: str
    correlation_id: str
    user_id: Optional[str] = None
    start_time: float = field(default_factory=time.time)

    @staticmethod
    def create(
        request_id: Optional[str] = None,
        correlation_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> "RequestContext":
        request_id = request_id or str(uuid.uuid4())
        return RequestContext(
            request_id=request_id,
            correlation_id=correlation_id or request_id,
            user_id=user_id,
        )

    @property
    def elapsed_ms(self) -> float:
        return (time.time() - self.start_time) * 1000


# Async-safe context var (works with FastAPI/asyncio)
_context_var: contextvars.ContextVar[Optional[RequestContext]] = contextvars.ContextVar(
    "request_context", default=None
)


def get_current_context() -> Optional[RequestContext]:
    return _context_var.get()


def set_current_context(context: RequestContext) -> contextvars.Token:
    return _context_var.set(context)


def reset_current_context(token: contextvars.Token) -> None:
    _context_var.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Adds ``correlation_id`` to every record passing through a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_current_context()
        record.correlation_id = context.correlation_id[:8] if context else "-"
        return True


class LogBuffer(logging.Handler):
    """Keeps the most recent records as dicts."""

    def __init__(self, max_size: int = 500, level: int = logging.WARNING):
        super().__init__(level=level)
        self.max_size = max_size
        self._buffer: deque = deque(maxlen=max_size)

    def emit(self, record: logging.LogRecord) -> None:
        context = get_current_context()
        self._buffer.append({
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "logger": record.name,
            "level": record.levelname.lower(),
            "message": record.getMessage(),
            "correlation_id": context.correlation_id if context else None,
        })

    def get_recent(self, count: int = 50, logger_prefix: Optional[str] = None) -> List[Dict[str, Any]]:
        items = [
            entry for entry in self._buffer
            if logger_prefix is None or entry["logger"].startswith(logger_prefix)
        ]
        return items[-count:]

    def clear(self) -> int:
        count = len(self._buffer)
        self._buffer.clear()
        return count


_buffer: Optional[LogBuffer] = None


def get_log_buffer() -> LogBuffer:
    global _buffer
    if _buffer is None:
        _buffer = LogBuffer()
    return _buffer


def configure_logging(level: str = "INFO") -> None:
    """Install the service log format and the recent-warnings buffer."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    root = logging.getLogger()
    for handler in root.handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())

    service_logger = logging.getLogger("vice-city")
    buffer = get_log_buffer()
    if buffer not in service_logger.handlers:
        service_logger.addHandler(buffer)

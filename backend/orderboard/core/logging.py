"""
Structured logging for the order board.
Request-scoped records carry the request_id set by the middleware.
"""
import inspect
import json
import logging
import time
import uuid
from contextvars import ContextVar
from functools import wraps
from typing import Any, Dict, Optional

from orderboard.core.config import settings

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
request_start_var: ContextVar[Optional[float]] = ContextVar('request_start', default=None)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def generate_request_id() -> str:
    return uuid.uuid4().hex[:8]


class StructuredLogger:
    """
    Thin wrapper over a stdlib logger.
    Emits JSON lines in production and a compact single-line format elsewhere.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.name = name

    @property
    def _is_json(self) -> bool:
        return settings.APP_ENV == 'production'

    def _record(
        self,
        level: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[BaseException] = None,
    ) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            'timestamp': time.strftime('%Y-%m-%dT%H:%M:%S%z'),
            'level': level,
            'logger': self.name,
            'message': message,
            'env': settings.APP_ENV,
        }
        request_id = get_request_id()
        if request_id:
            record['request_id'] = request_id
        if context:
            record['context'] = context
        if error is not None:
            record['error'] = {'type': type(error).__name__, 'message': str(error)}
        return record

    def _format(self, record: Dict[str, Any]) -> str:
        if self._is_json:
            return json.dumps(record, default=str)

        parts = [f"[{record.get('request_id', '-')}]", record['message']]
        if 'context' in record:
            parts.append(f"| {record['context']}")
        if 'error' in record:
            parts.append(f"| error={record['error']['type']}: {record['error']['message']}")
        return ' '.join(parts)

    def _log(self, level: int, message: str, error: Optional[BaseException] = None, **context):
        if not self.logger.isEnabledFor(level):
            return
        record = self._record(logging.getLevelName(level), message, context or None, error)
        self.logger.log(level, self._format(record))

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, error: Optional[BaseException] = None, **context):
        self._log(logging.WARNING, message, error, **context)

    def error(self, message: str, error: Optional[BaseException] = None, **context):
        self._log(logging.ERROR, message, error, **context)


def get_logger(name: str = 'orderboard') -> StructuredLogger:
    return StructuredLogger(name)


api_logger = get_logger('orderboard.api')
webhook_logger = get_logger('orderboard.webhook')
store_logger = get_logger('orderboard.store')
broadcast_logger = get_logger('orderboard.broadcast')
mirror_logger = get_logger('orderboard.mirror')


def log_operation(operation: str, logger: Optional[StructuredLogger] = None):
    """
    Log entry/exit of a coroutine with its duration.

    Usage:
        @log_operation("ingest_webhook", webhook_logger)
        async def ingest_webhook(...):
            ...
    """
    def decorator(func):
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"log_operation expects a coroutine function, got {func!r}")

        @wraps(func)
        async def wrapper(*args, **kwargs):
            log = logger or api_logger
            start = time.time()
            log.debug(f"{operation} started")
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                duration = round((time.time() - start) * 1000, 2)
                log.warning(f"{operation} failed", error=e, duration_ms=duration)
                raise
            duration = round((time.time() - start) * 1000, 2)
            log.info(f"{operation} completed", duration_ms=duration)
            return result

        return wrapper

    return decorator

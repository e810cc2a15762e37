import dataclasses
import enum
import json
import logging
import os
import traceback
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
import queue
import sys
from typing import Any, Dict, List, Optional, Tuple
from logging import Handler

from .config import Settings
from .constants import LOG_DATA_MAX_STRING_LENGTH


_REDACT_KEYS: set[str] = set()

_logger: Optional[logging.Logger] = None
_log_listener: Optional[QueueListener] = None


def _sanitize_for_json(obj: Any) -> Any:
    """Make ``obj`` JSON-safe, redacting ``_REDACT_KEYS`` and dropping ``None`` values.

    Dataclasses become dicts, bytes are decoded leniently and anything else
    that ``json`` cannot encode is replaced by its ``repr``.
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        obj = dataclasses.asdict(obj)
    if isinstance(obj, dict):
        return {
            k: "***REDACTED***" if isinstance(k, str) and k.lower() in _REDACT_KEYS else v
            for k, v in ((k, _sanitize_for_json(v)) for k, v in obj.items())
            if v is not None
        }
    if isinstance(obj, (list, tuple, set)):
        return [v for v in map(_sanitize_for_json, obj) if v is not None]
    if isinstance(obj, bytes):
        return obj.decode("utf-8", "replace")
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    return repr(obj)


def _truncate_data(detail: Dict[str, Any]) -> None:
    data = detail.get("data")
    if not isinstance(data, dict):
        return
    for key, value in data.items():
        if isinstance(value, str) and len(value) > LOG_DATA_MAX_STRING_LENGTH:
            data[key] = value[:LOG_DATA_MAX_STRING_LENGTH] + "...[truncated]"


class LogEvent(enum.Enum):
    """Enumeration of structured log events emitted by AI-TAP.

    These constants are used in ``LogRecord.event`` so cache and storage
    activity can be filtered consistently.
    """

    CACHE_EVENT = "cache_event"
    CACHE_EVICTION = "cache_eviction"
    STORAGE_EVENT = "storage_event"
    SNAPSHOT_SAVED = "snapshot_saved"
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_DISCARDED = "snapshot_discarded"
    AUTOSAVE_EVENT = "autosave_event"
    GENERATION_EVENT = "generation_event"


@dataclasses.dataclass
class LogError:
    """Structured representation of an exception attached to a log entry.

    Attributes:
        name: Exception class name.
        message: Human-readable description.
        stack_trace: Full traceback string (may be ``None`` when suppressed).
        args: JSON-safe serialization of ``Exception.args``.
    """

    name: str
    message: str
    stack_trace: Optional[str] = None
    args: Optional[Tuple[Any, ...]] = None


@dataclasses.dataclass
class LogRecord:
    """Primary payload transported via the logging system.

    Attributes:
        event: Identifier from :class:`LogEvent` or custom tag.
        message: Short human-readable summary.
        request_id: Optional correlator supplied by the caller.
        data: Arbitrary contextual dictionary (sanitized/truncated).
        error: Optional :class:`LogError` with exception details.
    """

    event: str
    message: str
    request_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[LogError] = None


class JSONFormatter(logging.Formatter):
    """Renders each record as one compact JSON line.

    Records emitted through the helpers below carry a :class:`LogRecord`,
    which becomes the ``detail`` object. Plain ``logging`` calls keep their
    formatted message instead.
    """

    include_stack_trace = True

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        payload = getattr(record, "log_record", None)
        if isinstance(payload, LogRecord):
            detail = _sanitize_for_json(payload)
            _truncate_data(detail)
            if not self.include_stack_trace and "error" in detail:
                detail["error"].pop("stack_trace", None)
            entry["detail"] = detail
        else:
            entry["message"] = record.getMessage()
            if record.exc_info and record.exc_info[1] is not None:
                exc = record.exc_info[1]
                entry["error"] = LogError(
                    name=type(exc).__name__,
                    message=str(exc),
                    stack_trace=self.formatException(record.exc_info)
                    if self.include_stack_trace
                    else None,
                )
        return json.dumps(
            _sanitize_for_json(entry), ensure_ascii=False, separators=(",", ":")
        )


class ConsoleJSONFormatter(JSONFormatter):
    """:class:`JSONFormatter` without stack traces, for interactive consoles."""

    include_stack_trace = False


def init_logging(settings: Settings) -> logging.Logger:
    global _logger
    global _log_listener
    global _REDACT_KEYS
    shutdown_logging()

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(-1)
    queue_handler = QueueHandler(log_queue)

    console_handler = logging.StreamHandler(stream=sys.stdout)
    console_handler.setFormatter(
        ConsoleJSONFormatter() if settings.log_pretty_console else JSONFormatter()
    )

    handlers: List[Handler] = [console_handler]

    if settings.log_file_path:
        try:
            log_dir = os.path.dirname(settings.log_file_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(
                settings.log_file_path, mode="a", encoding="utf-8"
            )
            file_handler.setFormatter(JSONFormatter())
            handlers.append(file_handler)
        except OSError as e:
            logging.getLogger(settings.app_name).warning(
                "Failed to configure file logging: %s", e
            )

    _log_listener = QueueListener(log_queue, *handlers)
    _log_listener.start()

    logger = logging.getLogger(settings.app_name)
    logger.handlers = [queue_handler]
    logger.propagate = False
    logger.setLevel(settings.log_level.upper())
    _logger = logger
    _REDACT_KEYS = {k.lower() for k in settings.redact_log_fields}
    return _logger


def shutdown_logging() -> None:
    """Safely shutdown logging system, flushing all messages."""
    global _log_listener
    if _log_listener:
        _log_listener.stop()
        _log_listener = None


def _log(level: int, record: LogRecord, exc: Optional[BaseException] = None) -> None:
    """Internal helper to log structured messages with exception handling.

    Processes the exception (if provided) into the LogRecord's error field
    and emits the log entry at the specified level.
    """
    if exc:
        stack_str = None
        if _logger is not None and _logger.isEnabledFor(logging.DEBUG):
            stack_str = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        sanitized = _sanitize_for_json(exc.args)
        sanitized_args = (
            tuple(sanitized) if isinstance(sanitized, (list, tuple)) else (sanitized,)
        )

        record.error = LogError(
            name=type(exc).__name__,
            message=str(exc),
            stack_trace=stack_str,
            args=sanitized_args,
        )
        if not record.message:
            record.message = str(exc) or "An unspecified error occurred"

    if _logger:
        _logger.log(level=level, msg=record.message, extra={"log_record": record})


def debug(record: LogRecord) -> None:
    _log(logging.DEBUG, record)


def info(record: LogRecord) -> None:
    _log(logging.INFO, record)


def warning(record: LogRecord, exc: Optional[BaseException] = None) -> None:
    _log(logging.WARNING, record, exc=exc)


def error(record: LogRecord, exc: Optional[BaseException] = None) -> None:
    _log(logging.ERROR, record, exc=exc)

import contextvars
import datetime
import json
import logging
import os
import uuid
from typing import Any, Optional

# Id of the upload/request being processed; each asyncio task sees its own copy
_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("ofx_ingest_request_id", default=None)

NO_REQUEST = "GLOBAL"


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line: timestamp, level, logger and source location,
    the current request id, structured fields and the traceback, if any.
    """
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "request_id": _request_id.get() or NO_REQUEST,
        }

        structured = getattr(record, "extra_fields", None)
        if isinstance(structured, dict):
            entry.update(structured)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(log_level: int = logging.INFO, log_file: Optional[str] = None):
    """
    Send every log record to stderr, and to ``log_file`` when given, as JSON lines.
    Replaces any handler already attached to the root logger.
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)

    logging.getLogger(__name__).debug(
        "JSON logging configured",
        extra={"extra_fields": {"log_level": logging.getLevelName(log_level), "log_file": log_file}},
    )


def set_request_id(request_id: Optional[str]):
    """Bind ``request_id`` to the current context (None clears it)."""
    _request_id.set(request_id)


def get_request_id() -> str:
    """The id bound to the current context; a new uuid4 is bound when none is."""
    request_id = _request_id.get()
    if request_id is None:
        request_id = str(uuid.uuid4())
        _request_id.set(request_id)
    return request_id


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """
    Adapter that turns arbitrary keyword arguments into structured fields.

        logger.info("Statement parsed", total=12, institution="SAFRA")
    """
    _standard_args = {'exc_info', 'stack_info', 'stacklevel', 'extra'}

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        fields = dict(extra.get("extra_fields") or {})

        new_kwargs = {}
        for key, value in kwargs.items():
            if key in self._standard_args:
                new_kwargs[key] = value
            elif key == "extra_fields" and isinstance(value, dict):
                fields.update(value)
            else:
                fields[key] = value

        extra["extra_fields"] = fields
        new_kwargs["extra"] = extra
        return msg, new_kwargs


def get_logger(name: str) -> StructuredLoggerAdapter:
    """Structured logger for ``name``; see StructuredLoggerAdapter."""
    return StructuredLoggerAdapter(logging.getLogger(name), {})

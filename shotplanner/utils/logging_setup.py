"""
Logging setup shared by the HTTP service and the CLI.

Every record carries three context fields, ``-`` when unset:

- ``request_id``: the ``X-Request-ID`` of the HTTP request being served
  (taken from the request header or generated by the server middleware);
- ``project_id``: the project a route or CLI command is reading or writing;
- ``operation``: ``"<METHOD> <path>"`` for HTTP requests, the subcommand
  name (``parse``, ``import-videos``, ``export``...) for the CLI, or a
  narrower step such as ``export`` set inside a route.

``log_context`` sets any of them for the duration of a ``with`` block and
restores the enclosing values on exit, so nested contexts refine rather than
replace what an outer layer set.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(project_id)s | %(operation)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

LOG_REQUEST_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("log_request_id", default=None)
LOG_PROJECT_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("log_project_id", default=None)
LOG_OPERATION: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("log_operation", default=None)


class ContextFilter(logging.Filter):
    """Copies the current request, project and operation context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = LOG_REQUEST_ID.get() or "-"
        record.project_id = LOG_PROJECT_ID.get() or "-"
        record.operation = LOG_OPERATION.get() or "-"
        return True


@contextmanager
def log_context(
    request_id: Optional[str] = None,
    project_id: Optional[str] = None,
    operation: Optional[str] = None,
) -> Iterator[None]:
    tokens = []
    if request_id is not None:
        tokens.append((LOG_REQUEST_ID, LOG_REQUEST_ID.set(request_id)))
    if project_id is not None:
        tokens.append((LOG_PROJECT_ID, LOG_PROJECT_ID.set(project_id)))
    if operation is not None:
        tokens.append((LOG_OPERATION, LOG_OPERATION.set(operation)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(
    log_file: str = "logs/shotplanner.log",
    level: str | int = logging.INFO,
    enable_console: bool = False,
    force: bool = False,
) -> logging.Logger:
    root = logging.getLogger()
    if getattr(root, "_shotplanner_logging_configured", False) and not force:
        return root

    if force:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for log_filter in list(root.filters):
            root.removeFilter(log_filter)

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    context_filter = ContextFilter()

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    # Handler-level filters also cover records propagated from child loggers.
    file_handler.addFilter(context_filter)

    root.addHandler(file_handler)
    if enable_console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        stream_handler.addFilter(context_filter)
        root.addHandler(stream_handler)

    root.addFilter(context_filter)
    root.setLevel(parse_level(level))
    logging.captureWarnings(True)
    root._shotplanner_logging_configured = True
    return root

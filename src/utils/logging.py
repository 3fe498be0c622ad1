from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Optional

# Context variables for structured logging
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
user_id_var: ContextVar[str] = ContextVar("user_id", default="-")
context_id_var: ContextVar[str] = ContextVar("context_id", default="-")


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.user_id = user_id_var.get()
        record.context_id = context_id_var.get()
        return True


class SimpleStructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.utcnow().isoformat(timespec="seconds") + "Z"
        msg = record.getMessage()
        line = (
            f"{ts} level={record.levelname} logger={record.name} "
            f"request_id={getattr(record, 'request_id', '-')} user_id={getattr(record, 'user_id', '-')} "
            f"context_id={getattr(record, 'context_id', '-')} "
            f"msg={msg}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO") -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(lvl)

    # Replace handlers so repeated setup (CLI + tests) doesn't duplicate lines
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(lvl)
    handler.addFilter(ContextFilter())
    handler.setFormatter(SimpleStructuredFormatter())

    root.addHandler(handler)


def set_log_context(*, request_id: str, user_id: Optional[str] = None, context_id: Optional[str] = None) -> None:
    request_id_var.set(request_id)
    if user_id is not None:
        user_id_var.set(user_id)
    if context_id is not None:
        context_id_var.set(context_id)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

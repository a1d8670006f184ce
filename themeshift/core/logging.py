"""Logging setup that stamps records with the adaptation being worked on.

Each record carries ``session_id``, ``tick_id`` and ``event_id`` (``None``
when unknown), so one evaluation can be followed from snapshot to commit.
The identifiers live in a ``ContextVar`` and therefore follow the asyncio
task that set them.
"""

from __future__ import annotations

import contextvars
import dataclasses
import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TextIO

TEXT_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s "
    "[session=%(session_id)s tick=%(tick_id)s event=%(event_id)s] %(message)s"
)


@dataclass(frozen=True, slots=True)
class CorrelationContext:
    session_id: str | None = None
    tick_id: str | None = None
    event_id: str | None = None

    def merged(self, **overrides: str | None) -> CorrelationContext:
        """Copy with every non-``None`` override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return dataclasses.replace(self, **changes)

    def as_fields(self) -> dict[str, str | None]:
        return dataclasses.asdict(self)


_current: contextvars.ContextVar[CorrelationContext] = contextvars.ContextVar(
    "themeshift_correlation",
    default=CorrelationContext(),
)


def get_correlation_context() -> CorrelationContext:
    return _current.get()


@contextmanager
def correlation_scope(
    *,
    session_id: str | None = None,
    tick_id: str | None = None,
    event_id: str | None = None,
) -> Iterator[None]:
    """Set correlation ids for the enclosed block; unset ids keep the outer value."""
    token = _current.set(
        _current.get().merged(session_id=session_id, tick_id=tick_id, event_id=event_id)
    )
    try:
        yield
    finally:
        _current.reset(token)


class CorrelationFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in get_correlation_context().as_fields().items():
            setattr(record, key, value)
        return True


class _JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in dataclasses.fields(CorrelationContext):
            payload[field.name] = getattr(record, field.name, None)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def setup_logging(
    level: int | str = logging.INFO,
    json_output: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Replace the root handlers with one correlation-aware stream handler (stderr by default)."""
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(_JsonFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    handler.addFilter(CorrelationFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.filters.clear()
    root.addFilter(CorrelationFilter())
    root.addHandler(handler)
    root.setLevel(level)


__all__ = [
    "CorrelationContext",
    "CorrelationFilter",
    "TEXT_FORMAT",
    "correlation_scope",
    "get_correlation_context",
    "setup_logging",
]

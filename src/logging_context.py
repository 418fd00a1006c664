"""Dashboard session tagging for log records.

Each authorized session gets an id (``SES-XXXXXX``). The bootstrap task
binds it once; feed listeners and the midnight timer are registered from
inside that task, so their callbacks run in a copy of the same context
and their records carry the id too. Records emitted outside any session
are tagged ``-``.

``load_config`` installs ``session_handler()`` on the root logger, which
renders the id through ``LOG_FORMAT``:

    2024-01-01 09:00:00 [src.engine.feeds] INFO <SES-AB12CD>: Real-time update: ...
"""

import logging
from contextvars import ContextVar
from typing import Optional

NO_SESSION = "-"

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s <%(session_id)s>: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_current_session: ContextVar[str] = ContextVar("dashboard_session", default=NO_SESSION)


def set_session_id(session_id: str) -> None:
    """Bind ``session_id`` to the running task and everything it schedules."""
    _current_session.set(session_id)


def get_session_id() -> str:
    return _current_session.get()


class SessionIdFilter(logging.Filter):
    """Stamps ``record.session_id`` unless a logger-level filter already did."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = _current_session.get()  # type: ignore[attr-defined]
        return True


def session_handler(
    stream=None, fmt: str = LOG_FORMAT, datefmt: Optional[str] = LOG_DATEFMT,
) -> logging.Handler:
    """Stream handler that can format ``%(session_id)s`` for any logger's records."""
    handler = logging.StreamHandler(stream)
    handler.addFilter(SessionIdFilter())
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def get_session_logger(name: str) -> logging.Logger:
    """Module logger whose records are stamped at creation time.

    Stamping on the logger, not only on the handler, keeps the id on
    records that reach handlers installed by someone else (pytest's
    ``caplog``, a host application's handlers).
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger

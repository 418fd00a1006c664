"""Tests for session tagging of log records."""

import contextvars
import io
import logging

import pytest

from src.logging_context import (
    NO_SESSION,
    SessionIdFilter,
    get_session_id,
    get_session_logger,
    session_handler,
    set_session_id,
)


@pytest.fixture
def captured():
    """A plain logger (no logger-level filter) writing through session_handler."""
    stream = io.StringIO()
    handler = session_handler(stream, fmt="%(levelname)s <%(session_id)s> %(message)s")
    logger = logging.getLogger("tests.session_tagging")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(handler)
    yield logger, stream
    logger.removeHandler(handler)
    logger.propagate = True


class TestSessionHandler:
    def test_renders_bound_session(self, captured):
        logger, stream = captured

        def run():
            set_session_id("SES-TEST01")
            logger.info("feed applied")

        contextvars.copy_context().run(run)
        assert stream.getvalue().strip() == "INFO <SES-TEST01> feed applied"

    def test_outside_session_uses_placeholder(self, captured):
        logger, stream = captured
        logger.warning("startup")
        assert f"<{NO_SESSION}>" in stream.getvalue()

    def test_binding_does_not_leak_out_of_context(self):
        contextvars.copy_context().run(set_session_id, "SES-INNER1")
        assert get_session_id() == NO_SESSION

    def test_logger_stamp_wins_over_handler(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        record.session_id = "SES-FIRST1"
        SessionIdFilter().filter(record)
        assert record.session_id == "SES-FIRST1"


class TestSessionLogger:
    def test_filter_attached_once(self):
        get_session_logger("tests.session_logger")
        logger = get_session_logger("tests.session_logger")
        assert sum(isinstance(f, SessionIdFilter) for f in logger.filters) == 1


class TestLoadConfigInstallsHandler:
    def test_root_handler_formats_session_id(self):
        from src.config import load_config

        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        root.handlers.clear()
        try:
            load_config()
            installed = [
                h for h in root.handlers
                if any(isinstance(f, SessionIdFilter) for f in h.filters)
            ]
            assert len(installed) == 1
            assert "%(session_id)s" in installed[0].formatter._fmt
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

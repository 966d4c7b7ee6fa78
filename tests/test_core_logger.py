# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import io
import logging
from datetime import datetime

from rich.console import Console

from hpcjm_lib.core.logger import CFG, get_logger


def _make_stringio_logger(monkeypatch, name, *, show_time=False):
    """Return a logger writing into a StringIO buffer."""
    buf = io.StringIO()

    monkeypatch.setitem(
        get_logger.__globals__,
        "Console",
        lambda **kwargs: Console(file=buf, force_terminal=False, width=200),
    )

    logging.getLogger(name).handlers.clear()
    logger = get_logger(name, show_time=show_time)
    return logger, buf


def test_logger_debug_mode(monkeypatch):
    monkeypatch.setenv(CFG.env_vars.debug_mode, "1")
    assert get_logger("hpcjm_test_debug").level == logging.DEBUG


def test_logger_non_debug_mode(monkeypatch):
    monkeypatch.delenv(CFG.env_vars.debug_mode, raising=False)
    assert get_logger("hpcjm_test_info").level == logging.INFO


def test_logger_does_not_stack_handlers():
    name = "hpcjm_test_handlers"
    logging.getLogger(name).handlers.clear()

    get_logger(name)
    logger = get_logger(name)

    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_logger_outputs_time_in_debug_mode(monkeypatch):
    monkeypatch.setenv(CFG.env_vars.debug_mode, "1")
    logger, buf = _make_stringio_logger(monkeypatch, "hpcjm_test_time_debug")
    logger.info("hello")

    # ignore seconds
    timestamp = datetime.now().strftime(CFG.date_formats.standard)[:-3]
    assert timestamp in buf.getvalue()


def test_logger_does_not_output_time_by_default(monkeypatch):
    monkeypatch.delenv(CFG.env_vars.debug_mode, raising=False)
    logger, buf = _make_stringio_logger(monkeypatch, "hpcjm_test_time_default")
    logger.info("hello")
    output = buf.getvalue()

    timestamp = datetime.now().strftime(CFG.date_formats.standard)[:-3]
    assert "hello" in output
    assert timestamp not in output


def test_logger_hides_debug_messages_outside_debug_mode(monkeypatch):
    monkeypatch.delenv(CFG.env_vars.debug_mode, raising=False)
    logger, buf = _make_stringio_logger(monkeypatch, "hpcjm_test_hidden")
    logger.debug("invisible")
    logger.warning("visible")
    output = buf.getvalue()

    assert "invisible" not in output
    assert "visible" in output

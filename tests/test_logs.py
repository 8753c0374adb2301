"""Tests for debug log setup."""

from __future__ import annotations

import logging

import pytest

from till.logs import configure_logging


@pytest.fixture
def till_logger(monkeypatch):
    monkeypatch.setattr(logging, "raiseExceptions", logging.raiseExceptions)
    logger = logging.getLogger("till")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


def test_logs_go_to_rotating_file(tmp_path, till_logger):
    log_path = tmp_path / "logs" / "till.log"

    handler = configure_logging(str(log_path))
    logging.getLogger("till.checkout").info("sale_recorded bill=%s", "POS-000001")
    handler.flush()

    assert till_logger.handlers == [handler]
    assert not till_logger.propagate
    assert "INFO till.checkout sale_recorded bill=POS-000001" in log_path.read_text(encoding="utf-8")


def test_reconfiguring_replaces_handlers(tmp_path, till_logger):
    configure_logging(str(tmp_path / "a.log"))
    handler = configure_logging(str(tmp_path / "b.log"))

    assert till_logger.handlers == [handler]


def test_unwritable_log_path_is_tolerated(tmp_path, till_logger):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")

    assert configure_logging(str(blocker / "till.log")) is None
    assert isinstance(till_logger.handlers[0], logging.NullHandler)


def test_failed_record_stays_off_the_terminal(tmp_path, till_logger, capsys):
    raise_exceptions = logging.raiseExceptions
    configure_logging(str(tmp_path / "till.log"))

    logging.getLogger("till.checkout").info("total=%d", "not a number")

    assert capsys.readouterr().err == ""
    assert logging.raiseExceptions is raise_exceptions

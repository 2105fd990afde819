import logging

import pytest

from app.core.logger import logger, setup_logging


@pytest.fixture
def restore_logging():
    yield
    setup_logging(error_log=None)


def test_stdlib_errors_reach_error_file(tmp_path, restore_logging):
    error_log = tmp_path / "errors.log"
    setup_logging(error_log=str(error_log))

    logging.getLogger("supabase.client").error("insert failed")
    logger.info("booking created")
    logger.remove()

    text = error_log.read_text()
    assert "insert failed" in text
    assert "booking created" not in text


def test_level_filters_console(capsys, restore_logging):
    setup_logging("warning", error_log=None)

    logger.info("hidden")
    logger.warning("shown")

    out = capsys.readouterr().out
    assert "shown" in out
    assert "hidden" not in out


def test_noisy_libraries_are_quieted(restore_logging):
    setup_logging(error_log=None)
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("uvicorn.access").level == logging.WARNING

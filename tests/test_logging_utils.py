import logging

import pytest

from orrery.core.logging_utils import LOGGER_NAME, setup_logging


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    yield logger
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


def test_repeated_setup_does_not_stack_handlers(clean_logger):
    setup_logging()
    setup_logging(logging.DEBUG)

    assert len(clean_logger.handlers) == 1
    assert clean_logger.level == logging.DEBUG


def test_log_file_receives_records(clean_logger, tmp_path):
    log_path = tmp_path / "orrery.log"

    logger = setup_logging(log_file=log_path)
    logging.getLogger(f"{LOGGER_NAME}.render").info("Resized to %dx%d", 640, 480)
    for handler in logger.handlers:
        handler.flush()

    text = log_path.read_text(encoding="utf-8")
    assert "orrery.render - INFO - Resized to 640x480" in text

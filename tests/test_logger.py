import logging

import pytest

from FeatureTracking.exceptions import ConfigurationError
from FeatureTracking.logger import ROOT_LOGGER_NAME, configure_logging, get_logger


@pytest.fixture(autouse=True)
def restore_package_logger():
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    level, handlers = logger.level, list(logger.handlers)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


def test_module_loggers_are_children():
    assert get_logger("pipeline").name == "FeatureTracking.pipeline"


def test_repeated_configuration_replaces_handlers():
    configure_logging(level="INFO")
    logger = configure_logging(level="debug")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1


def test_log_file(tmp_path):
    log_file = tmp_path / 'logs' / 'tracking.log'
    logger = configure_logging(level="WARNING", log_file=str(log_file), console=False)
    assert len(logger.handlers) == 1

    get_logger("pipeline").info("not written")
    get_logger("pipeline").warning("frame 3 has no keypoints")
    for handler in logger.handlers:
        handler.flush()

    text = log_file.read_text()
    assert "[WARNING] [FeatureTracking.pipeline] frame 3 has no keypoints" in text
    assert "not written" not in text


def test_unknown_level():
    with pytest.raises(ConfigurationError):
        configure_logging(level="LOUD")

from unittest.mock import patch

from loguru import logger as loguru_logger

from parkwell.config.settings_env import Settings, settings
from parkwell.shared import utils


def test_settings_defaults():
    defaults = Settings(_env_file=None)
    assert defaults.API_PREFIX == "/api"
    assert defaults.JWT_ALGORITHM == "HS256"
    assert defaults.RESET_OTP_EXPIRES_MINUTES == 10
    assert defaults.SENDGRID_API_KEY is None


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("FASTAPI_PORT", "9001")
    monkeypatch.setenv("DEV_MODE", "False")
    custom = Settings(_env_file=None)
    assert custom.FASTAPI_PORT == 9001
    assert custom.DEV_MODE is False


def test_log_level_dev_mode():
    with patch.object(settings, "DEV_MODE", True), patch.object(settings, "LOG_LEVEL", None):
        assert utils.resolve_log_level() == "TRACE"


def test_log_level_prod_mode():
    with patch.object(settings, "DEV_MODE", False), patch.object(settings, "LOG_LEVEL", None):
        assert utils.resolve_log_level() == "INFO"


def test_log_level_override():
    with patch.object(settings, "LOG_LEVEL", "warning"):
        assert utils.resolve_log_level() == "WARNING"


def test_initialize_logger_returns_loguru_logger():
    logger = utils.initialize_logger()
    assert logger is loguru_logger
    assert logger.level("TRACE").no == loguru_logger.level("TRACE").no


def test_std_logging_is_routed_to_loguru():
    import logging

    messages = []
    sink_id = loguru_logger.add(messages.append, level="INFO", format="{message}")
    try:
        utils.intercept_std_logging(names=("parkwell.test",))
        logging.getLogger("parkwell.test").warning("from stdlib")
    finally:
        loguru_logger.remove(sink_id)
    assert any("from stdlib" in str(m) for m in messages)

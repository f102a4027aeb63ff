import logging
import sys
from loguru import logger as loguru_logger

from parkwell.config.settings_env import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Route records from stdlib loggers (uvicorn, sqlalchemy) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def resolve_log_level() -> str:
    if settings.LOG_LEVEL:
        return settings.LOG_LEVEL.upper()
    return "TRACE" if settings.DEV_MODE else "INFO"


def initialize_logger():
    """Initialize the logger based on DEV_MODE / LOG_LEVEL settings."""
    loguru_logger.remove()

    level = resolve_log_level()
    loguru_logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    if settings.LOG_FILE:
        loguru_logger.add(settings.LOG_FILE, level=level, rotation="10 MB", retention=5)

    return loguru_logger


def intercept_std_logging(names=("uvicorn", "uvicorn.access", "uvicorn.error")):
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in names:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False


# Initialize logger
logger = initialize_logger()

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

from yqwork.core.config import Settings

MAX_LOG_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CONSOLE_FORMAT = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", DATE_FORMAT)
FILE_FORMAT = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s", DATE_FORMAT
)
ACCESS_FORMAT = logging.Formatter("%(asctime)s - %(message)s", DATE_FORMAT)


def _rotating(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Configure the root logger (stdout, ``app.log``, ``error.log``) and the
    ``access`` logger, which writes only to ``access.log``.
    """
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(CONSOLE_FORMAT)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(_rotating(log_dir / "app.log", level, FILE_FORMAT))
    root_logger.addHandler(_rotating(log_dir / "error.log", logging.ERROR, FILE_FORMAT))

    access_logger = logging.getLogger("access")
    access_logger.setLevel(logging.INFO)
    access_logger.handlers.clear()
    access_logger.addHandler(_rotating(log_dir / "access.log", logging.INFO, ACCESS_FORMAT))
    access_logger.propagate = False

    if not settings.SQL_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return root_logger

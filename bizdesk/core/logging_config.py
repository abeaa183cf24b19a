from logging.handlers import RotatingFileHandler
from pathlib import Path
import logging

from ..config.settings import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5

def setup_logging(settings: Settings) -> logging.Logger:
    """
    Configure the "bizdesk" logger: console output, plus rotating
    server.log and error.log files when LOG_DIR is set.
    Calling it again replaces the previous handlers.
    """
    logger = logging.getLogger("bizdesk")
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)

        server_log = RotatingFileHandler(
            log_dir / "server.log", maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
        )
        server_log.setFormatter(formatter)
        logger.addHandler(server_log)

        error_log = RotatingFileHandler(
            log_dir / "error.log", maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
        )
        error_log.setLevel(logging.ERROR)
        error_log.setFormatter(formatter)
        logger.addHandler(error_log)

    return logger

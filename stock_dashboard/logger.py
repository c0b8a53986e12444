import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from . import settings


def setup_logger(
    name: str = "stock_dashboard",
    log_level: Optional[int] = None,
    log_file: str = "ingestion.log",
) -> logging.Logger:
    """
    Console output for the operator plus a rotating file log for diagnostics.
    Skipped-row and coercion warnings end up in both.
    """
    if log_level is None:
        log_level = logging.getLevelName(settings.LOG_LEVEL)
        if not isinstance(log_level, int):
            log_level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Already configured by an earlier call in this process
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        settings.LOG_DIR / log_file,
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(file_handler)

    # requests retries and connection pool chatter
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logger

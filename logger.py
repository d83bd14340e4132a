import logging
from pathlib import Path
import sys

from config import config

LOG_LEVEL = getattr(logging, str(config.bible_loader_log_level).upper(), logging.INFO)
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"

BASE_DIR = Path(__file__).resolve().parent
LOGS_DIR = BASE_DIR / "logs"
LOGS_DIR.mkdir(exist_ok=True)
log_file_path = LOGS_DIR / "bible_loader.log"

# httpx logs every request at INFO; a full publish run sends over a thousand.
for _noisy in ("httpx", "httpcore"):
    logging.getLogger(_noisy).setLevel(max(LOG_LEVEL, logging.WARNING))


def _handlers() -> list[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers: list[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_file_path, mode="a", encoding="utf-8"),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def get_logger(name: str) -> logging.Logger:
    """Logger writing to stdout and logs/bible_loader.log at the configured level."""
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVEL)

    if not logger.hasHandlers():
        for handler in _handlers():
            logger.addHandler(handler)

    return logger

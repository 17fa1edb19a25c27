import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Union


# Logs go to the console and to a rotating file under <repo>/logs.
LOG_DIR = Path(__file__).resolve().parent.parent.parent / "logs"
LOG_FILE = LOG_DIR / "inspira.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# discord.py logs every gateway event at INFO/DEBUG
NOISY_LOGGERS = ("discord.gateway", "discord.http", "discord.voice_state")


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """Attach console and rotating file handlers to the root logger once."""
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    numeric_level = _resolve_level(level)
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger.setLevel(numeric_level)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logging.captureWarnings(True)


__all__ = ["setup_logging", "LOG_DIR", "LOG_FILE"]

"""Logging setup shared by the command-line entry point and embedding apps."""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(
    name: str = "flashdeck",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure and return a logger.

    Calling it again for the same name does not add duplicate handlers.

    Args:
        name: Logger name (package root by default)
        level: Logging level, as an int or a level name like "DEBUG"
        log_file: Optional path of a rotating log file

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    formatter = logging.Formatter(DEFAULT_FORMAT)

    if not any(getattr(h, "_flashdeck_console", False) for h in logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console._flashdeck_console = True
        logger.addHandler(console)

    if log_file:
        log_path = Path(log_file).resolve()
        already = any(
            isinstance(h, logging.handlers.RotatingFileHandler)
            and Path(h.baseFilename) == log_path
            for h in logger.handlers
        )
        if not already:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                str(log_path), maxBytes=1_000_000, backupCount=3, encoding="utf-8"
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger

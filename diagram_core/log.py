import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(
    name: str = "diagram_core",
    level: int | str = logging.WARNING,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up and configure a logger with a console handler and an optional file handler.

    Args:
        name: Name of the logger, typically the package name
        level: Logging level for the logger and its handlers
        log_file: Optional path of a log file to write to as well

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT)

    # Add handlers to logger if they haven't been added already
    if not logger.handlers:
        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        logger.addHandler(ch)

        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_file)
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

APP_LOGGER_NAME = "calorie_service"


def setup_logger(
    name: str = APP_LOGGER_NAME,
    log_level: str = "INFO",
    log_to_file: bool = True,
    log_dir: Optional[str] = None,
) -> logging.Logger:
    """
    Set up logger with console and file handlers

    Args:
        name: Name of the logger
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to add the rotating file handler
        log_dir: Directory for log files, defaults to <service>/logs

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)

    # Repeated calls (reloads, test imports) must not stack handlers
    if logger.handlers:
        return logger

    console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_to_file:
        log_dir = log_dir or os.path.join(os.path.dirname(os.path.dirname(__file__)), "logs")
        os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            os.path.join(log_dir, f"{name}.log"),
            maxBytes=10485760,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(file_formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    # Third-party loggers
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    return logger


def get_logger(component: str) -> logging.Logger:
    """Child logger of the application logger, e.g. ``calorie_service.events``."""
    return logging.getLogger(f"{APP_LOGGER_NAME}.{component}")

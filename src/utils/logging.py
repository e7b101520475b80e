"""
Logging setup for the protocol matching service.
"""
import logging
import sys
from typing import Iterable, Optional

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "asyncio")


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Configure root logging for the service, API and CLI.

    Args:
        level: Logging level name; defaults to the LOG_LEVEL setting
        log_file: Optional file path for log output; defaults to the LOG_FILE setting
        quiet: Logger names capped at WARNING
    """
    if level is None or log_file is None:
        from src.utils.config import get_settings
        settings = get_settings()
        level = level or settings.log_level
        log_file = log_file or settings.log_file

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"Logging configured at {level.upper()}")

"""Centralized logging configuration.

Library modules only create loggers; entry points (server, CLI) call
``setup_logging`` once. Level and log file default to the ``CALL_RBAC_*``
settings.
"""

import logging
from pathlib import Path

from call_rbac.utils.errors import ConfigurationError

from .config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# One line per HTTP request; kept at WARNING so grants and dispatches stand out
QUIET_LOGGERS = ("uvicorn.access", "httpx")


def setup_logging(
    name: str = "call_rbac",
    level: str | None = None,
    log_file: Path | None = None,
    settings: Settings | None = None,
) -> logging.Logger:
    """Configure logging with consistent format.

    Args:
        name: Logger name to return
        level: Log level (defaults to ``settings.log_level``)
        log_file: Optional file path for logging output (defaults to ``settings.log_file``)
        settings: Settings to read defaults from (loaded from the environment if omitted)

    Returns:
        Configured logger instance

    Raises:
        ConfigurationError: If the level name is not a logging level
    """
    if level is None or log_file is None:
        settings = settings or Settings()
        level = level or settings.log_level
        log_file = log_file or settings.log_file

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ConfigurationError(f"Unknown log level: {level}")

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    for quiet in QUIET_LOGGERS:
        logging.getLogger(quiet).setLevel(max(numeric_level, logging.WARNING))

    return logging.getLogger(name)

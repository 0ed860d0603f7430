"""
Logging configuration for the single-store migration.

Logs go to stderr and, optionally, to a rotating file. Either destination
can emit JSON records. Settings come from ``LOG_*`` environment variables,
with command-line values taking precedence.
"""

import logging
import logging.handlers
import os
import sys

from .formatters import ConsoleFormatter, JSONFormatter

APP_NAME = "single-store-migrate"

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP client and exporter loggers that drown out migration progress at INFO
QUIET_LOGGERS = ("urllib3", "requests", "opentelemetry")

TRUE_VALUES = ("true", "1", "yes")


def _formatter(json_format: bool, console: bool, app_name: str) -> logging.Formatter:
    if json_format:
        return JSONFormatter(app_name=app_name)
    if console:
        return ConsoleFormatter(use_colors=True)
    return logging.Formatter(fmt=PLAIN_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool = False,
    app_name: str = APP_NAME,
    max_bytes: int = 50 * 1024 * 1024,  # 50MB
    backup_count: int = 5,
) -> None:
    """
    Configure the root logger

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (if None, file logging is disabled)
        console_output: Whether to log to stderr
        json_format: Use JSON records for every handler
        app_name: Application name stamped on JSON records
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated log files to keep
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handlers: list[logging.Handler] = []

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(_formatter(json_format, True, app_name))
        handlers.append(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(_formatter(json_format, False, app_name))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging initialized: level={level}, file={log_file or 'none'}, "
        f"console={console_output}, json={json_format}"
    )


def shutdown_logging() -> None:
    """
    Close and detach all root handlers.

    Releases RotatingFileHandler file handles; call during shutdown.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    logging.shutdown()


def configure_from_env(**overrides) -> None:
    """
    Configure logging from environment variables

    Keyword arguments of ``setup_logging`` override the environment when
    not None.

    Environment variables:
        LOG_LEVEL: Log level (default: INFO)
        LOG_FILE: Log file path (default: none)
        LOG_JSON: Use JSON format (default: false)
        LOG_CONSOLE: Enable console output (default: true)
        LOG_MAX_BYTES: Rotate the log file at this size (default: 50MB)
        LOG_BACKUP_COUNT: Rotated files to keep (default: 5)
    """
    settings = {
        "level": os.getenv("LOG_LEVEL", "INFO"),
        "log_file": os.getenv("LOG_FILE"),
        "json_format": os.getenv("LOG_JSON", "false").lower() in TRUE_VALUES,
        "console_output": os.getenv("LOG_CONSOLE", "true").lower() in TRUE_VALUES,
        "max_bytes": int(os.getenv("LOG_MAX_BYTES", str(50 * 1024 * 1024))),
        "backup_count": int(os.getenv("LOG_BACKUP_COUNT", "5")),
    }
    settings.update({key: value for key, value in overrides.items() if value is not None})

    setup_logging(**settings)

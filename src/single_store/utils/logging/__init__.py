"""
Structured logging configuration for the single-store migration

Provides JSON-formatted or colored console logging with contextual
information attached through ``extra``.

Usage:
    from single_store.utils.logging import setup_logging

    setup_logging(level="INFO", log_file="/var/log/single-store/migrate.log")

    logger = logging.getLogger(__name__)
    logger.info("Reconciled table", extra={"table_name": "catalog_product_entity_int"})
"""

from .config import configure_from_env, setup_logging, shutdown_logging
from .formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "setup_logging",
    "configure_from_env",
    "shutdown_logging",
    "JSONFormatter",
    "ConsoleFormatter",
]

"""
Database credentials for the CLI.

Credentials come from HashiCorp Vault (``--use-vault``) or from command-line
arguments with environment variable fallbacks.
"""

import argparse
import logging
import os
import sys
from typing import Any

from single_store.utils.vault_client import VaultClient

logger = logging.getLogger(__name__)

ENV_DEFAULTS = {
    "postgresql": {
        "host": ("POSTGRES_HOST", "localhost"),
        "port": ("POSTGRES_PORT", "5432"),
        "database": ("POSTGRES_DB", "magento"),
        "username": ("POSTGRES_USER", "magento"),
        "password": ("POSTGRES_PASSWORD", None),
    },
    "sqlserver": {
        "host": ("SQLSERVER_HOST", "localhost"),
        "port": ("SQLSERVER_PORT", "1433"),
        "database": ("SQLSERVER_DATABASE", "magento"),
        "username": ("SQLSERVER_USER", "sa"),
        "password": ("SQLSERVER_PASSWORD", None),
    },
}


def get_connection_config(args: argparse.Namespace) -> dict[str, Any]:
    """
    Resolve connection settings for ``args.backend``

    Args:
        args: Parsed command-line arguments

    Returns:
        Dictionary with host, port, database, username and password
    """
    if args.use_vault:
        try:
            creds = VaultClient().get_database_credentials(args.backend)
        except Exception as e:
            logger.error(f"Failed to fetch credentials from Vault: {e}")
            sys.exit(1)

        config = {
            "host": creds["host"],
            "port": int(creds["port"]),
            "database": creds["database"],
            "username": creds["username"],
            "password": creds["password"],
        }
        logger.info("Fetched database credentials from Vault")
        return config

    defaults = ENV_DEFAULTS[args.backend]
    overrides = {
        "host": args.host,
        "port": args.port,
        "database": args.database,
        "username": args.user,
        "password": args.password,
    }

    config = {}
    for key, (env_var, default) in defaults.items():
        config[key] = overrides[key] or os.getenv(env_var, default)
    config["port"] = int(config["port"])

    if not config["password"]:
        logger.error(f"{args.backend} password not provided")
        sys.exit(1)

    return config

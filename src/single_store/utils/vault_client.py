"""
HashiCorp Vault client for fetching catalog database credentials

Reads credentials from the KV v2 secrets engine at
``<prefix>/<database_type>`` where the prefix defaults to ``secret/database``
(``VAULT_SECRET_PREFIX``). SQL Server secrets store the host as ``server``;
returned credentials always carry it as ``host``.
"""

import logging
import os
import re
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

SUPPORTED_DATABASE_TYPES = ("postgresql", "sqlserver")

REQUIRED_FIELDS = {
    "postgresql": ["host", "database", "username", "password"],
    "sqlserver": ["server", "database", "username", "password"],
}

DEFAULT_PORTS = {
    "postgresql": 5432,
    "sqlserver": 1433,
}

DEFAULT_SECRET_PREFIX = "secret/database"


class VaultClient:
    """
    HashiCorp Vault client for secrets management
    """

    def __init__(
        self,
        vault_addr: Optional[str] = None,
        vault_token: Optional[str] = None,
        namespace: Optional[str] = None,
        secret_prefix: Optional[str] = None,
        timeout: float = 10.0,
    ):
        """
        Initialize Vault client

        Args:
            vault_addr: Vault server address (default: VAULT_ADDR env var)
            vault_token: Vault authentication token (default: VAULT_TOKEN env var)
            namespace: Vault namespace (optional, for Vault Enterprise)
            secret_prefix: KV path holding one secret per database type
                (default: VAULT_SECRET_PREFIX env var or secret/database)
            timeout: HTTP timeout in seconds

        Raises:
            ValueError: If vault_addr or vault_token are not provided
        """
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_token = vault_token or os.getenv("VAULT_TOKEN")
        self.namespace = namespace
        self.secret_prefix = (
            secret_prefix or os.getenv("VAULT_SECRET_PREFIX", DEFAULT_SECRET_PREFIX)
        ).strip("/")
        self.timeout = timeout

        if not self.vault_addr:
            raise ValueError(
                "Vault address not provided. Set VAULT_ADDR environment variable "
                "or pass vault_addr parameter."
            )

        if not self.vault_token:
            raise ValueError(
                "Vault token not provided. Set VAULT_TOKEN environment variable "
                "or pass vault_token parameter."
            )

        self.vault_addr = self.vault_addr.rstrip("/")

        self.headers = {
            "X-Vault-Token": self.vault_token,
            "Content-Type": "application/json",
        }
        if self.namespace:
            self.headers["X-Vault-Namespace"] = self.namespace

    def get_secret(self, secret_path: str) -> Dict[str, Any]:
        """
        Fetch a secret from the KV v2 secrets engine

        Args:
            secret_path: Path to secret (e.g., "secret/database/postgresql")

        Raises:
            ValueError: If the path is invalid or the secret is missing/empty
            requests.RequestException: If the Vault request fails
        """
        if not secret_path or not isinstance(secret_path, str):
            raise ValueError("secret_path must be a non-empty string")

        if ".." in secret_path or secret_path.startswith("/"):
            raise ValueError(
                f"Invalid secret_path: {secret_path}. "
                "Path traversal attempts are not allowed."
            )

        if not re.match(r"^[a-zA-Z0-9/_-]+$", secret_path):
            raise ValueError(
                f"Invalid secret_path: {secret_path}. "
                "Only alphanumeric characters, slashes, underscores, and hyphens are allowed."
            )

        # KV v2 requires /data/ after the mount point
        if "/data/" not in secret_path:
            mount, _, rest = secret_path.partition("/")
            secret_path = f"{mount}/data/{rest}" if rest else f"{mount}/data"

        url = f"{self.vault_addr}/v1/{secret_path}"
        logger.debug(f"Fetching secret from: {url}")

        response = requests.get(url, headers=self.headers, timeout=self.timeout)

        if response.status_code == 404:
            raise ValueError(f"Secret not found at path: {secret_path}")

        response.raise_for_status()

        secret_data = response.json().get("data", {}).get("data", {})
        if not secret_data:
            raise ValueError(f"No data found in secret at path: {secret_path}")

        return secret_data

    def get_database_credentials(self, database_type: str) -> Dict[str, Any]:
        """
        Fetch credentials for the migration target database

        Args:
            database_type: "postgresql" or "sqlserver"

        Returns:
            Credential dictionary with ``host`` and ``port`` always present

        Raises:
            ValueError: If database_type is unsupported or fields are missing
        """
        if database_type not in SUPPORTED_DATABASE_TYPES:
            raise ValueError(
                f"Unsupported database_type: {database_type!r}. "
                f"Must be one of: {', '.join(SUPPORTED_DATABASE_TYPES)}."
            )

        secret_data = dict(self.get_secret(f"{self.secret_prefix}/{database_type}"))

        missing_fields = [
            field for field in REQUIRED_FIELDS[database_type] if field not in secret_data
        ]
        if missing_fields:
            raise ValueError(
                f"Missing required fields in secret: {', '.join(missing_fields)}"
            )

        if "host" not in secret_data:
            secret_data["host"] = secret_data["server"]
        secret_data.setdefault("port", DEFAULT_PORTS[database_type])

        logger.info(f"Fetched {database_type} credentials from Vault")
        return secret_data

    def health_check(self) -> bool:
        """Return True if Vault is reachable and unsealed."""
        try:
            response = requests.get(f"{self.vault_addr}/v1/sys/health", timeout=5)
        except requests.RequestException as e:
            logger.error(f"Vault health check failed: {e}")
            return False

        # 200 active, 429 standby, 472/473 replication/performance standby
        return response.status_code in (200, 429, 472, 473)

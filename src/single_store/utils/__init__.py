"""
Utility modules for the single-store migration

Provides:
- logging: Structured logging setup
- tracing: OpenTelemetry spans
- metrics: Prometheus migration metrics
- retry: Backoff for transient database errors
- sql_safety: Identifier validation and quoting
- vault_client: HashiCorp Vault integration for secrets management
"""

__all__ = ["logging", "tracing", "metrics", "retry", "sql_safety", "vault_client"]

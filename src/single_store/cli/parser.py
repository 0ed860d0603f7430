"""
Command-line argument parser configuration.
"""

import argparse


def positive_int(value: str) -> int:
    """argparse type for ids and sizes that must be >= 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def _add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--store-id',
        type=positive_int,
        required=True,
        help='Store whose values are moved onto the default store'
    )
    parser.add_argument(
        '--backend',
        choices=['postgresql', 'sqlserver'],
        default='postgresql',
        help='Catalog database type (default: postgresql)'
    )
    parser.add_argument(
        '--use-vault',
        action='store_true',
        help='Fetch credentials from HashiCorp Vault'
    )
    parser.add_argument('--host', help='Database host')
    parser.add_argument('--port', type=int, help='Database port')
    parser.add_argument('--database', help='Database name')
    parser.add_argument('--user', help='Database username')
    parser.add_argument('--password', help='Database password')
    parser.add_argument(
        '--driver',
        help='ODBC driver name for SQL Server (default: ODBC Driver 18 for SQL Server)'
    )
    parser.add_argument(
        '--table-prefix',
        help='Physical table name prefix (default: MIGRATION_TABLE_PREFIX or none)'
    )
    parser.add_argument(
        '--entity-column',
        choices=['row_id', 'entity_id'],
        help='Entity link column of the EAV tables (default: row_id)'
    )
    parser.add_argument(
        '--batch-size',
        type=positive_int,
        help='Maximum ids per IN list (default: 1000)'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='single-store-migrate',
        description="Move store-scoped catalog attribute values onto the default store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show how many rows would be moved and deleted for store 1
  single-store-migrate plan --store-id 1 --host db --database magento --user magento

  # Migrate store 1 with credentials from Vault
  single-store-migrate run --store-id 1 --use-vault

  # Migrate a prefixed SQL Server catalog and save a JSON report
  single-store-migrate run --store-id 2 --backend sqlserver --table-prefix mg_ --output report.json
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: LOG_LEVEL or INFO)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        help='Emit JSON log records (default: LOG_JSON)'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file, rotated (default: LOG_FILE)'
    )
    parser.add_argument(
        '--otlp-endpoint',
        help='Export traces to this OTLP collector (e.g. localhost:4317)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Run command ==========
    run_parser = subparsers.add_parser('run', help='Migrate store-scoped values in one transaction')
    _add_connection_arguments(run_parser)
    run_parser.add_argument(
        '--raise-on-failure',
        action='store_true',
        help='Raise after rollback instead of returning a failed result'
    )
    run_parser.add_argument(
        '--output',
        help='Write the JSON result to this file'
    )
    run_parser.add_argument(
        '--format',
        choices=['console', 'json'],
        default='console',
        help='Output format (default: console)'
    )
    run_parser.add_argument(
        '--metrics-file',
        help='Write run metrics in Prometheus text format to this file (node exporter textfile collector)'
    )
    run_parser.add_argument(
        '--pushgateway',
        help='Push run metrics to this Prometheus Pushgateway (e.g. localhost:9091)'
    )

    # ========== Plan command ==========
    plan_parser = subparsers.add_parser('plan', help='Count affected rows without writing')
    _add_connection_arguments(plan_parser)

    return parser

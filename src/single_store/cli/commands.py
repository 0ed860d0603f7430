"""
CLI command implementations.

- run: Migrate one store onto the default store and export run metrics
- plan: Count rows the migration would move and delete
"""

import argparse
import dataclasses
import json
import logging

from prometheus_client import CollectorRegistry

from single_store.errors import CouldNotPersistError, MigrationFailedError
from single_store.migration import (
    MigrationOrchestrator,
    MigrationSettings,
    export_result_json,
    format_plan_console,
    format_result_console,
)
from single_store.storage.base import StorageBackend
from single_store.utils.metrics import MigrationMetrics

from .credentials import get_connection_config

logger = logging.getLogger(__name__)


def build_settings(args: argparse.Namespace) -> MigrationSettings:
    """Environment settings with command-line overrides applied."""
    settings = MigrationSettings.from_env()
    overrides = {
        "table_prefix": args.table_prefix,
        "entity_column": args.entity_column,
        "batch_size": args.batch_size,
    }
    if getattr(args, "raise_on_failure", False):
        overrides["raise_on_failure"] = True

    return dataclasses.replace(
        settings, **{key: value for key, value in overrides.items() if value is not None}
    )


def open_backend(args: argparse.Namespace, settings: MigrationSettings) -> StorageBackend:
    """Connect to the catalog database selected by ``args.backend``."""
    config = get_connection_config(args)

    if args.backend == "sqlserver":
        from single_store.storage.sqlserver import DEFAULT_DRIVER, SQLServerBackend

        return SQLServerBackend.connect(
            server=config["host"],
            port=config["port"],
            database=config["database"],
            user=config["username"],
            password=config["password"],
            driver=args.driver or DEFAULT_DRIVER,
            table_prefix=settings.table_prefix,
        )

    from single_store.storage.postgres import PostgresBackend

    return PostgresBackend.connect(
        host=config["host"],
        port=config["port"],
        database=config["database"],
        user=config["username"],
        password=config["password"],
        table_prefix=settings.table_prefix,
    )


def export_metrics(metrics: MigrationMetrics, args: argparse.Namespace) -> None:
    """Write and/or push run metrics as requested on the command line."""
    if args.metrics_file:
        try:
            metrics.write_textfile(args.metrics_file)
        except OSError as e:
            logger.error(f"Could not write metrics to {args.metrics_file}: {e}")

    if args.pushgateway:
        try:
            metrics.push(args.pushgateway)
        except OSError as e:
            logger.error(f"Could not push metrics to {args.pushgateway}: {e}")


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run the migration

    Returns:
        Process exit code: 0 on success or no-op, 1 on failure or invalid settings
    """
    try:
        settings = build_settings(args)
    except ValueError as e:
        logger.error(f"Invalid settings: {e}")
        return 1

    backend = open_backend(args, settings)
    metrics = MigrationMetrics(registry=CollectorRegistry())

    try:
        orchestrator = MigrationOrchestrator(backend, settings=settings, metrics=metrics)
        try:
            result = orchestrator.migrate(args.store_id)
        except MigrationFailedError as e:
            result = e.result
        except ValueError as e:
            logger.error(f"Cannot migrate store {args.store_id}: {e}")
            return 1
    finally:
        backend.close()

    export_metrics(metrics, args)

    if args.output:
        export_result_json(result, args.output)
        logger.info(f"Result written to {args.output}")

    if args.format == "json":
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_result_console(result))

    return 0 if result.succeeded else 1


def cmd_plan(args: argparse.Namespace) -> int:
    """
    Print per-table counts without writing

    Returns:
        Process exit code: 0 on success, 1 if the catalog could not be read
    """
    try:
        settings = build_settings(args)
    except ValueError as e:
        logger.error(f"Invalid settings: {e}")
        return 1

    backend = open_backend(args, settings)

    try:
        plans = MigrationOrchestrator(backend, settings=settings).plan(args.store_id)
    except ValueError as e:
        logger.error(f"Cannot plan store {args.store_id}: {e}")
        return 1
    except CouldNotPersistError as e:
        logger.error(f"Could not read {e.table}: {e.cause}")
        return 1
    finally:
        backend.close()

    print(format_plan_console(args.store_id, plans))
    return 0

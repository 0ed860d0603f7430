"""
Console and JSON output for migration results and plans.
"""

import json
from typing import Sequence

from .orchestrator import MigrationResult
from .reconciler import TablePlan


def export_result_json(result: MigrationResult, output_path: str) -> None:
    with open(output_path, "w") as f:
        json.dump(result.to_dict(), f, indent=2)


def format_result_console(result: MigrationResult) -> str:
    """
    Format a migration result for console output

    Args:
        result: Result returned by MigrationOrchestrator.migrate

    Returns:
        Formatted string for console display
    """
    lines = []

    lines.append("=" * 80)
    lines.append("SINGLE STORE MIGRATION")
    lines.append("=" * 80)
    lines.append(f"Source Store: {result.source_store_id}")
    lines.append(f"Status: {result.status.value.upper()}")
    lines.append(f"Started: {result.started_at.isoformat()}")
    lines.append(f"Duration: {result.duration_seconds:.2f}s")
    lines.append(f"Rows Deleted: {result.rows_deleted:,}")
    lines.append(f"Rows Moved: {result.rows_updated:,}")
    lines.append("")

    if result.tables:
        lines.append(f"{'TABLE':<45}{'CANDIDATES':>12}{'DELETED':>11}{'MOVED':>11}")
        lines.append("-" * 80)
        for table in result.tables:
            lines.append(
                f"{table.physical_table:<45}{table.candidates:>12,}"
                f"{table.rows_deleted:>11,}{table.rows_updated:>11,}"
            )
        lines.append("")

    if result.error is not None:
        lines.append("FAILURE")
        lines.append("-" * 80)
        lines.append(f"Table: {result.failed_table or 'n/a'}")
        lines.append(f"Error: {result.error}")
        lines.append("All changes were rolled back.")
        if result.rollback_error is not None:
            lines.append(f"Rollback error: {result.rollback_error}")
        lines.append("")

    lines.append("=" * 80)

    return "\n".join(lines)


def format_plan_console(source_store_id: int, plans: Sequence[TablePlan]) -> str:
    lines = []

    lines.append("=" * 80)
    lines.append(f"SINGLE STORE MIGRATION PLAN (store {source_store_id})")
    lines.append("=" * 80)
    lines.append(f"{'TABLE':<50}{'TO MOVE':>15}{'TO DELETE':>15}")
    lines.append("-" * 80)
    for plan in plans:
        lines.append(f"{plan.physical_table:<50}{plan.candidates:>15,}{plan.conflicts:>15,}")
    lines.append("-" * 80)
    lines.append(
        f"{'TOTAL':<50}{sum(p.candidates for p in plans):>15,}"
        f"{sum(p.conflicts for p in plans):>15,}"
    )
    lines.append("=" * 80)

    return "\n".join(lines)

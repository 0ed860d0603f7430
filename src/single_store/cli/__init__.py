"""
Command-line interface for the single-store migration.

Available commands:
- run: Move a store's catalog attribute values onto the default store
- plan: Show per-table counts without writing
"""

import sys

from single_store.utils.logging import configure_from_env
from single_store.utils.tracing import initialize_tracing, shutdown_tracing

from .commands import build_settings, cmd_plan, cmd_run, open_backend
from .credentials import get_connection_config
from .parser import create_parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the single-store-migrate CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_from_env(
        level=args.log_level,
        log_file=args.log_file,
        json_format=True if args.log_json else None,
    )

    if args.otlp_endpoint:
        initialize_tracing(otlp_endpoint=args.otlp_endpoint)

    if args.command not in ('run', 'plan'):
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = cmd_run(args) if args.command == 'run' else cmd_plan(args)
    finally:
        shutdown_tracing()

    sys.exit(exit_code)


__all__ = [
    'main',
    'cmd_run',
    'cmd_plan',
    'build_settings',
    'open_backend',
    'get_connection_config',
    'create_parser',
]


if __name__ == '__main__':
    main()

"""Vetbook CLI - Command-line interface for the booking service.

Usage:
    vetbook init-db
    vetbook seed seeds/demo_clinic.yaml
    vetbook slots --start 09:00 --end 17:00 --duration 30
    vetbook serve --port 8000
"""

import argparse
import logging

from vetbook.cli import commands
from vetbook.cli.commands import cmd_init_db, cmd_seed, cmd_serve, cmd_slots
from vetbook.config import LOG_FORMAT, LOG_LEVEL

__all__ = [
    "commands",
    "main",
    "create_parser",
]


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser.

    Returns:
        Configured ArgumentParser for testing and main().
    """
    parser = argparse.ArgumentParser(
        description="Vetbook - veterinary appointment booking service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db", help="SQLite database path (default: VETBOOK_DB_PATH or ./vetbook.db)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init-db
    init_parser = subparsers.add_parser("init-db", help="Create the database schema")
    init_parser.set_defaults(func=cmd_init_db)

    # seed
    seed_parser = subparsers.add_parser(
        "seed", help="Load doctors and pets from a YAML file"
    )
    seed_parser.add_argument("seed_file", help="Path to seed YAML file")
    seed_parser.set_defaults(func=cmd_seed)

    # slots
    slots_parser = subparsers.add_parser(
        "slots", help="Preview the slots a working-hours window produces"
    )
    slots_parser.add_argument("--start", "-s", required=True, help="Start time HH:MM")
    slots_parser.add_argument("--end", "-e", required=True, help="End time HH:MM")
    slots_parser.add_argument(
        "--duration", "-d", type=int, default=30, help="Slot length in minutes"
    )
    slots_parser.set_defaults(func=cmd_slots)

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", "-p", type=int, default=8000, help="Port")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Reload on code changes"
    )
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main():
    """Main CLI entry point."""
    logging.basicConfig(level=LOG_LEVEL.upper(), format=LOG_FORMAT)
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()

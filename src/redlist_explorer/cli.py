"""
Command-line interface for the application.

This module provides the main entry point for the CLI.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from redlist_explorer import __version__
from redlist_explorer.config import get_settings
from redlist_explorer.logging_setup import configure_logging


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="redlist-explorer",
        description="Compare IUCN Red List assessments with GBIF occurrence evidence",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show application info")

    # 'warm' command - load and validate snapshot files
    warm_parser = subparsers.add_parser("warm", help="Load and validate snapshot files")
    warm_parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Snapshot directory (default: data_dir from settings)",
    )

    # 'serve' command - run the API
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Interface to bind (default: api_host from settings)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to serve on (default: api_port from settings)",
    )

    return parser


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Debug: {settings.debug}")
    print(f"Data directory: {settings.data_dir}")
    print(f"Red List API key: {'set' if settings.red_list_api_key else 'not set'}")
    return 0


def cmd_warm(args: argparse.Namespace) -> int:
    """Handle the 'warm' command: load every taxon's snapshot."""
    from redlist_explorer.flows.warm import warm_snapshots

    data_dir = args.data_dir if args.data_dir is not None else get_settings().data_dir
    if not data_dir.exists():
        print(f"Data directory not found: {data_dir}", file=sys.stderr)
        return 1

    results = warm_snapshots(data_dir)
    if not any(summary["available"] for summary in results.values()):
        print("No snapshots could be loaded.", file=sys.stderr)
        return 1

    print("Done.")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Handle the 'serve' command: run the API under uvicorn."""
    import uvicorn

    from redlist_explorer.web import create_app

    settings = get_settings()
    host = args.host if args.host is not None else settings.api_host
    port = args.port if args.port is not None else settings.api_port

    if not settings.data_dir.exists():
        print(
            f"Data directory not found: {settings.data_dir}. Listings will be empty.",
            file=sys.stderr,
        )

    print(f"Serving API on http://{host}:{port}/api (Ctrl+C to stop)")
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = get_settings()
    configure_logging("DEBUG" if args.debug or settings.debug else settings.log_level)

    commands = {
        "info": cmd_info,
        "warm": cmd_warm,
        "serve": cmd_serve,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())

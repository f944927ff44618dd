#!/usr/bin/env python3
"""
Annotator CLI - Thin entrypoint for operator commands.

Commands:
- serve: load a record file and serve the HTTP API until interrupted
- stats: load a record file and print annotation progress

Design Principles:
==================
- CLI is a dispatcher only
- Surface load errors verbatim from the persistence layer
- Exit non-zero on failure

Exit Codes:
===========
- 0: Success
- 1: Invalid settings (bad flag or environment values)
- 2: Command line usage error
- 4: Record file missing, unreadable or malformed
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

from annotator import __version__
from annotator.ledger import AnnotationLedger
from annotator.persistence import DecodeError, PersistenceError
from annotator.settings import AnnotatorSettings

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_ledger(path: Path, build_terms: bool = True) -> AnnotationLedger:
    """
    Load the record file at path.

    Raises:
        SystemExit(4): File missing, unreadable or malformed
    """
    try:
        return AnnotationLedger.from_path(path, build_terms=build_terms)
    except DecodeError as e:
        print(f"ERROR: Malformed record file: {e}", file=sys.stderr)
        sys.exit(4)
    except PersistenceError as e:
        print(f"ERROR: Cannot load record file: {e}", file=sys.stderr)
        sys.exit(4)


def cmd_stats(args: argparse.Namespace) -> NoReturn:
    """
    Print annotation progress for a record file.

    Exit codes:
        0: File loaded
        4: File missing, unreadable or malformed
    """
    path = Path(args.file)
    ledger = _load_ledger(path)
    stats = ledger.statistics()

    print(f"{path}")
    print(f"  Records:  {stats.total}")
    print(f"  Answered: {stats.done}")
    print(f"  Todo:     {stats.todo}")
    print(f"  Terms:    {ledger.terms.term_count}")
    sys.exit(0)


def cmd_serve(args: argparse.Namespace) -> NoReturn:
    """
    Serve the HTTP API for a record file.

    Answers are saved periodically, on POST /api/save, and once more at
    shutdown.

    Exit codes:
        0: Server stopped normally
        1: Invalid settings
        4: File missing, unreadable or malformed
    """
    try:
        settings = AnnotatorSettings.from_env(
            data_path=Path(args.file),
            host=args.host,
            port=args.port,
            autosave_seconds=args.autosave_seconds,
            debug=True if args.debug else None,
        )
    except ValueError as e:
        print(f"ERROR: Invalid settings: {e}", file=sys.stderr)
        sys.exit(1)

    _configure_logging(settings.debug)

    ledger = _load_ledger(settings.data_path)
    stats = ledger.statistics()
    logger.info(f"{stats.total} items, {stats.todo} to do")

    import uvicorn
    from annotator.main import create_app

    app = create_app(ledger, settings)

    if settings.host == "0.0.0.0":
        logger.warning("Listening on all interfaces. No authentication is configured.")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )
    sys.exit(0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="annotator",
        description="Annotator - concurrent labeling of records against candidate answers",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to execute")

    # Serve command
    parser_serve = subparsers.add_parser(
        "serve",
        help="Serve the HTTP API for a record file",
    )
    parser_serve.add_argument(
        "file",
        help="Record file (line-delimited JSON, .gz for compressed)",
    )
    parser_serve.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: ANNOTATOR_HOST or 127.0.0.1)",
    )
    parser_serve.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: ANNOTATOR_PORT or 8080)",
    )
    parser_serve.add_argument(
        "--autosave-seconds",
        type=float,
        default=None,
        help="Seconds between autosaves, 0 disables (default: 300)",
    )
    parser_serve.add_argument(
        "--debug",
        action="store_true",
        help="Debug logging",
    )
    parser_serve.set_defaults(func=cmd_serve)

    # Stats command
    parser_stats = subparsers.add_parser(
        "stats",
        help="Print annotation progress for a record file",
    )
    parser_stats.add_argument(
        "file",
        help="Record file (line-delimited JSON, .gz for compressed)",
    )
    parser_stats.set_defaults(func=cmd_stats)

    return parser


def main(argv: Optional[List[str]] = None) -> NoReturn:
    """
    Main CLI entrypoint.

    Parses arguments and dispatches to subcommands.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()

"""CLI entry point: python -m counsel_ai.cli {sweep,cleanup,usage}"""

import argparse
import asyncio
import json
import sys
from datetime import timedelta

import structlog

from counsel_ai.ai.config import load_ai_config
from counsel_ai.ai.usage import get_period_summary
from counsel_ai.bootstrap import build_gateway, build_similarity_stack
from counsel_ai.config.settings import get_settings
from counsel_ai.db.engine import dispose_engine
from counsel_ai.db.session import get_session_factory
from counsel_ai.logging_config import configure_logging
from counsel_ai.similarity.cache import SimilarityCache, utcnow


async def run_sweep() -> dict:
    """Run the historical similarity sweep once, on demand."""
    settings = get_settings()
    session_factory = get_session_factory()
    ai_config = load_ai_config(settings.ai_config_path)
    gateway = build_gateway(settings, ai_config, session_factory)
    stack = build_similarity_stack(gateway, session_factory, ai_config)

    summary = await stack.sweep.run_sweep()
    return summary.as_dict()


async def run_cleanup() -> dict:
    deleted = await SimilarityCache(get_session_factory()).purge_expired()
    return {"deleted": deleted}


async def run_usage(days: int) -> dict:
    since = utcnow() - timedelta(days=days)
    return await get_period_summary(get_session_factory(), since)


async def _run_command(args: argparse.Namespace) -> dict:
    try:
        if args.command == "sweep":
            return await run_sweep()
        if args.command == "cleanup":
            return await run_cleanup()
        return await run_usage(args.days)
    finally:
        await dispose_engine()


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="counsel_ai.cli",
        description="Counsel AI maintenance CLI",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("sweep", help="Run the historical ticket similarity sweep now")
    subparsers.add_parser("cleanup", help="Delete expired similarity cache rows")
    usage_parser = subparsers.add_parser("usage", help="Summarize AI usage and cost")
    usage_parser.add_argument(
        "--days",
        type=int,
        default=7,
        help="Reporting window in days (default: 7)",
    )

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    settings = get_settings()
    configure_logging(json_output=settings.log_json, log_level=settings.log_level)
    log = structlog.get_logger()

    result = asyncio.run(_run_command(args))

    log.info("cli_command_complete", command=args.command)
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()

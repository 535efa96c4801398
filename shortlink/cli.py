"""
Command-line interface for the short link service.

Usage:
    shortlink shorten <url> [--custom-code CODE] [--expires-at ISO8601]
    shortlink resolve <short_code>
    shortlink info <short_code>
    shortlink stats
    shortlink list [--start ISO8601] [--end ISO8601] [--limit N]
    shortlink clean
    shortlink init-db

Connection settings come from the same environment variables as the server
(DATABASE_URL, REDIS_URL, ...), or from --db-url / --redis-url.
"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .common.logging_config import setup_logging
from .config import Config
from .database.postgres import PostgresLinkStore
from .errors import LinkServiceError
from .factory import build_service


def _parse_timestamp(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid ISO 8601 timestamp: {value}") from e


def _to_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2, default=lambda v: v.isoformat() if isinstance(v, datetime) else str(v))


class ShortLinkCLI:
    """Command-line interface for the link service."""

    def __init__(self, config: Config, verbose: bool = False):
        """Initialize CLI."""
        self.config = config
        self.logger = setup_logging(level="DEBUG" if verbose else "ERROR", stream=sys.stderr)
        self.service = None

    async def initialize(self):
        """Build the service and its collaborators."""
        self.service = await build_service(self.config, self.logger)

    async def cleanup(self):
        """Release resources."""
        if self.service:
            await self.service.close()

    async def shorten(self, url: str, custom_code: Optional[str], expires_at: Optional[datetime]) -> Dict[str, Any]:
        summary = await self.service.create(url, custom_code=custom_code, expires_at=expires_at)
        return asdict(summary)

    async def resolve(self, short_code: str) -> Dict[str, Any]:
        return {"short_code": short_code, "original_url": await self.service.resolve(short_code)}

    async def info(self, short_code: str) -> Dict[str, Any]:
        return (await self.service.info(short_code)).to_dict()

    async def stats(self) -> Dict[str, Any]:
        return (await self.service.stats()).to_dict()

    async def list_links(self, start: Optional[datetime], end: Optional[datetime], limit: int) -> Dict[str, Any]:
        links: List = await self.service.list_links(start=start, end=end, limit=limit)
        return {"count": len(links), "links": [link.to_dict() for link in links]}

    async def clean(self) -> Dict[str, Any]:
        deleted = await self.service.clean_expired()
        return {"deleted_count": deleted, "timestamp": datetime.now(timezone.utc)}


async def init_db(config: Config, verbose: bool) -> int:
    """Create the PostgreSQL schema."""
    logger = setup_logging(level="DEBUG" if verbose else "INFO", stream=sys.stderr)
    store = PostgresLinkStore(
        db_config=config.database_url,
        connection_timeout_seconds=config.database_timeout_seconds,
        logger=logger,
    )
    try:
        await store.ensure_schema()
        if not await store.health_check():
            logger.error("Database health check failed")
            return 1
        logger.info("Done")
        return 0
    finally:
        await store.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shortlink",
        description="Short link service CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s shorten https://example.com/long/url
  %(prog)s shorten example.com --custom-code mylink --expires-at 2030-01-01T00:00:00Z
  %(prog)s info mylink
  %(prog)s clean
        """,
    )
    parser.add_argument("--db-url", help="Database URL (default: DATABASE_URL)")
    parser.add_argument("--redis-url", help="Redis URL (default: REDIS_URL)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")
    shorten_parser.add_argument("--custom-code", help="Custom short code")
    shorten_parser.add_argument("--expires-at", type=_parse_timestamp, help="Expiry (ISO 8601)")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a short code (counts an access)")
    resolve_parser.add_argument("short_code")

    info_parser = subparsers.add_parser("info", help="Show link information")
    info_parser.add_argument("short_code")

    subparsers.add_parser("stats", help="Show aggregate statistics")

    list_parser = subparsers.add_parser("list", help="List links by creation time")
    list_parser.add_argument("--start", type=_parse_timestamp)
    list_parser.add_argument("--end", type=_parse_timestamp)
    list_parser.add_argument("--limit", type=int, default=100)

    subparsers.add_parser("clean", help="Delete expired links")
    subparsers.add_parser("init-db", help="Create the PostgreSQL schema")

    return parser


async def run(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    overrides = {}
    if args.db_url:
        overrides["database_url"] = args.db_url
    if args.redis_url:
        overrides["redis_url"] = args.redis_url
    config = Config(**overrides)

    if args.command == "init-db":
        return await init_db(config, args.verbose)

    cli = ShortLinkCLI(config, verbose=args.verbose)
    try:
        await cli.initialize()

        if args.command == "shorten":
            result = await cli.shorten(args.url, args.custom_code, args.expires_at)
        elif args.command == "resolve":
            result = await cli.resolve(args.short_code)
        elif args.command == "info":
            result = await cli.info(args.short_code)
        elif args.command == "stats":
            result = await cli.stats()
        elif args.command == "list":
            result = await cli.list_links(args.start, args.end, args.limit)
        else:
            result = await cli.clean()

        print(_to_json({"success": True, **result}))
        return 0

    except LinkServiceError as e:
        print(_to_json({"success": False, "error": e.kind.value, "detail": e.message}), file=sys.stderr)
        return 1
    finally:
        await cli.cleanup()


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()

# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from datetime import datetime, timedelta
from enum import Enum
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from modproxy.app import open_service
from modproxy.config import ConfigurationError, configure_logging
from modproxy.domain.errors import UpstreamError
from modproxy.domain.model import SearchQuery

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from modproxy.app import CatalogService

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cached access to the Reforger workshop")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    mod = subparsers.add_parser("mod", help="Fetch one mod")
    mod.add_argument("item_id", help="Workshop id of the mod")
    mod.add_argument(
        "--refresh",
        action="store_true",
        help="Bypass the cache and fetch from the workshop",
    )

    mods = subparsers.add_parser("mods", help="Fetch several mods at once")
    mods.add_argument("item_ids", nargs="+", help="Workshop ids of the mods")

    search = subparsers.add_parser("search", help="Search the workshop listing")
    search.add_argument("text", nargs="?", default="", help="Search text")
    search.add_argument("--page", type=int, default=1, help="Page number (default: %(default)s)")
    search.add_argument(
        "--sort",
        type=str,
        default="popularity",
        help="Sort order (default: %(default)s)",
    )

    token = subparsers.add_parser("token", help="Build id management")
    token_sub = token.add_subparsers(dest="token_command", required=True)
    token_sub.add_parser("show", help="Show the current build id")
    token_sub.add_parser("refresh", help="Re-derive the build id now")
    token_sub.add_parser(
        "diagnose",
        help="Check the build id, re-derive it and check the result",
    )

    history = subparsers.add_parser("history", help="Show the version history of a mod")
    history.add_argument("item_id", help="Workshop id of the mod")

    check = subparsers.add_parser("check", help="Tell listed, unlisted and missing mods apart")
    check.add_argument("item_id", help="Workshop id of the mod")

    subparsers.add_parser("stats", help="Show cache statistics")

    purge = subparsers.add_parser("purge", help="Delete long-unrefreshed cache entries")
    purge.add_argument(
        "--days",
        type=int,
        default=None,
        help="Age threshold in days (minimum and default: 365)",
    )

    return parser.parse_args(list(argv))


def _to_jsonable(value: object) -> object:
    if is_dataclass(value) and not isinstance(value, type):
        return {key: _to_jsonable(item) for key, item in asdict(value).items()}
    if isinstance(value, dict):
        return {str(key): _to_jsonable(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def _emit(payload: object) -> None:
    print(json.dumps(_to_jsonable(payload), indent=2, ensure_ascii=False))


async def _dispatch(service: CatalogService, args: argparse.Namespace) -> int:
    command = args.command
    if command == "mod":
        _emit(await service.get_item(args.item_id, force_refresh=args.refresh))
    elif command == "mods":
        result = await service.get_items(args.item_ids)
        _emit(result)
        return 1 if result.stats.failed_ids and not result.items else 0
    elif command == "search":
        _emit(await service.search(SearchQuery(page=args.page, text=args.text, sort=args.sort)))
    elif command == "token":
        if args.token_command == "show":
            _emit(service.token_status())
        elif args.token_command == "refresh":
            _emit(await service.refresh_token())
        else:
            diagnostics = await service.diagnose_token()
            _emit(diagnostics)
            return 0 if diagnostics.current_valid else 1
    elif command == "history":
        versions = await service.version_history(args.item_id)
        _emit(
            {
                "item_id": args.item_id,
                "versions_found": len(versions),
                "versions": versions,
            }
        )
    elif command == "check":
        status = await service.check_item(args.item_id)
        _emit({**asdict(status), "is_unlisted": status.is_unlisted})
    elif command == "stats":
        _emit({"cache": await service.cache_stats(), "token": service.token_status()})
    elif command == "purge":
        horizon = timedelta(days=args.days) if args.days is not None else None
        _emit({"removed": await service.purge(horizon)})
    else:
        raise ValueError(f"Unsupported command: {command}")
    return 0


async def _run(args: argparse.Namespace) -> int:
    async with open_service(
        refresh_on_start=False,
        run_background=False,
    ) as service:
        return await _dispatch(service, args)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        exit_code = asyncio.run(_run(parsed_args))
    except (ValueError, ConfigurationError) as exc:
        log.error("Invalid request: %s", exc)  # noqa: TRY400
        sys.exit(2)
    except UpstreamError as exc:
        log.error("Workshop request failed: %s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

"""Command-line entrypoint for isr_cache."""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Sequence

from isr_cache.contracts import cache_key_for
from isr_cache.controller import ISRController
from isr_cache.sources.page_sources import JsonDirectoryPageSource
from isr_cache.state.entry_store import SQLiteEntryStore
from isr_cache.state.gateway import CacheGateway
from isr_cache.validation import InvalidArgumentError


def _positive_int(value: str) -> int:
    """Parse a strictly positive integer argument."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {value}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    """Create and return the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="isr_cache",
        description="Incremental regeneration cache command-line interface.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
    )

    subparsers = parser.add_subparsers(dest="command")

    resolve = subparsers.add_parser(
        "resolve",
        help="Resolve one page through the cache and print the rendered view as JSON.",
    )
    resolve.add_argument("--store", required=True)
    resolve.add_argument("--pages", required=True, help="Directory of <param>.json page documents.")
    resolve.add_argument("--param", required=True)
    resolve.add_argument("--ttl", type=_positive_int, required=True)
    resolve.add_argument("--view", default="page")
    resolve.add_argument("--field", default="page")

    inspect = subparsers.add_parser("inspect", help="Print the stored cache entry for a page.")
    inspect.add_argument("--store", required=True)
    inspect.add_argument("--param", required=True)

    evict = subparsers.add_parser("evict", help="Delete the stored cache entry for a page.")
    evict.add_argument("--store", required=True)
    evict.add_argument("--param", required=True)

    clear = subparsers.add_parser("clear-expired", help="Delete rows past their retention.")
    clear.add_argument("--store", required=True)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI application."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command is None:
        return 0

    store = SQLiteEntryStore(args.store)
    try:
        if args.command == "resolve":
            source = JsonDirectoryPageSource(args.pages)
            controller = ISRController(store)
            try:
                rendered = controller.resolve_and_render(
                    args.param, source.get_page_data, args.ttl, args.view, args.field
                )
            except InvalidArgumentError as exc:
                parser.error(str(exc))
            print(json.dumps(rendered.to_dict(), sort_keys=True))
        elif args.command == "inspect":
            entry = CacheGateway(store).fetch(args.param)
            if entry is None:
                print(f"{cache_key_for(args.param)} absent")
            else:
                print(json.dumps(entry.to_dict(), sort_keys=True))
        elif args.command == "evict":
            CacheGateway(store).evict(args.param)
            print(f"{cache_key_for(args.param)} evicted")
        elif args.command == "clear-expired":
            print(f"clear-expired complete rows_removed={store.clear_expired()}")
    finally:
        store.close()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

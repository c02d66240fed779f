"""Command-line entry point for the preview resolver."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Sequence

from .cache import CacheStore
from .config import ResolverConfig
from .fetcher import PageFetcher
from .resolver import format_summary, run_resolver

logger = logging.getLogger("preview_resolver.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return ("resolve",)
    first = argv[0]
    if first in commands or first in ("-h", "--help"):
        return argv
    return ("resolve", *argv)


def _add_resolve_arguments(parser: argparse.ArgumentParser, defaults: ResolverConfig) -> None:
    parser.add_argument(
        "urls",
        nargs="*",
        help="Source page URLs to resolve (defaults to the built-in product list)",
    )
    parser.add_argument(
        "--cache",
        default=defaults.cache_path,
        type=Path,
        help="JSON file holding the source URL -> image URL mapping",
    )
    parser.add_argument(
        "--refresh",
        action=argparse.BooleanOptionalAction,
        default=defaults.refresh,
        help="Re-fetch every URL even when it is already cached (default from REFRESH_THUMBNAILS)",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=defaults.request_delay,
        help="Seconds to wait between consecutive page fetches",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=defaults.timeout,
        help="Per-page fetch timeout in seconds, redirects included",
    )
    parser.add_argument(
        "--max-redirects",
        type=int,
        default=defaults.max_redirects,
        help="Maximum number of redirects to follow for a single page",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    defaults = ResolverConfig.from_env()
    parser = argparse.ArgumentParser(
        description="Resolve preview images for product pages and cache them as JSON.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser(
        "resolve", help="Fetch pages and update the thumbnail cache"
    )
    _add_resolve_arguments(resolve_parser, defaults)

    lookup_parser = subparsers.add_parser(
        "lookup", help="Print the cached preview image for source URLs"
    )
    lookup_parser.add_argument("urls", nargs="+", help="Source page URLs to look up")
    lookup_parser.add_argument(
        "--cache",
        default=defaults.cache_path,
        type=Path,
        help="JSON file holding the source URL -> image URL mapping",
    )

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _run_resolve(args: argparse.Namespace) -> None:
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = ResolverConfig(
        cache_path=args.cache,
        refresh=args.refresh,
        timeout=args.timeout,
        request_delay=args.delay,
        max_redirects=args.max_redirects,
    )
    urls = tuple(args.urls) or config.source_urls
    store = CacheStore(config.cache_path)

    logger.info("=== Thumbnail Resolver ===")
    with PageFetcher(timeout=config.timeout, max_redirects=config.max_redirects) as fetcher:
        _, summary = run_resolver(
            urls,
            store,
            fetcher,
            refresh=config.refresh,
            delay=config.request_delay,
        )

    logger.info("Finished in %.2fs", summary.elapsed_seconds)
    sys.stdout.write(format_summary(summary, store.path) + "\n")
    sys.stdout.flush()


def _run_lookup(args: argparse.Namespace) -> None:
    logging.basicConfig(level=logging.WARNING, force=True)
    store = CacheStore(args.cache)
    mapping = store.load()
    for url in args.urls:
        image_url = store.get(mapping, url)
        sys.stdout.write(f"{url} -> {image_url or '(none)'}\n")
    sys.stdout.flush()


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    if args.command == "resolve":
        _run_resolve(args)
    else:
        _run_lookup(args)


if __name__ == "__main__":
    main()

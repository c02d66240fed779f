"""High-level orchestration for resolving and caching preview images."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence, Tuple

from .cache import CacheStore
from .config import DEFAULT_REQUEST_DELAY
from .extractor import extract_image_url
from .fetcher import FetchError, PageFetcher
from .models import Outcome, RunResult, RunSummary

logger = logging.getLogger("preview_resolver")

Extractor = Callable[[str, str], Optional[str]]


def resolve_one(
    url: str,
    fetcher: PageFetcher,
    extract: Extractor = extract_image_url,
) -> RunResult:
    """Fetch a single page and extract its preview image."""
    logger.info("  [FETCHING] %s", url)
    try:
        markup = fetcher.fetch(url)
        image_url = extract(markup, url)
    except FetchError as exc:
        logger.warning("  [ERROR] %s", exc)
        return RunResult(url, Outcome.FETCH_ERROR, error=str(exc))
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Unexpected error resolving %s", url)
        return RunResult(url, Outcome.FETCH_ERROR, error=f"{type(exc).__name__}: {exc}")

    if image_url:
        logger.info("  [FOUND] %s", image_url)
        return RunResult(url, Outcome.RESOLVED, image_url=image_url)
    logger.info("  [NOT FOUND] No image extracted")
    return RunResult(url, Outcome.NOT_FOUND)


def run_resolver(
    urls: Sequence[str],
    cache_store: CacheStore,
    fetcher: PageFetcher,
    *,
    refresh: bool = False,
    delay: float = DEFAULT_REQUEST_DELAY,
    sleep: Callable[[float], None] = time.sleep,
    extract: Extractor = extract_image_url,
) -> Tuple[Dict[str, str], RunSummary]:
    """Resolve every URL in order, merge successes and persist the cache once.

    Cached URLs are skipped unless ``refresh`` is set. Failed or empty
    resolutions never touch an existing cache entry.
    """
    start = time.perf_counter()
    mapping = cache_store.load()
    summary = RunSummary(total=len(urls))
    fetched_any = False

    logger.info(
        "Mode: %s",
        "REFRESH (re-fetching all)" if refresh else "INCREMENTAL (only new/missing)",
    )
    logger.info("Products to process: %d", len(urls))

    for index, url in enumerate(urls, start=1):
        logger.info("[%d/%d]", index, len(urls))
        cached = cache_store.get(mapping, url)
        if cached is not None and not refresh:
            logger.info("  [CACHED] %s", url)
            summary.record(RunResult(url, Outcome.CACHED, image_url=cached))
            continue

        if fetched_any and delay > 0:
            sleep(delay)
        fetched_any = True

        result = resolve_one(url, fetcher, extract)
        if result.outcome is Outcome.RESOLVED:
            mapping[url] = result.image_url
        summary.record(result)

    cache_store.persist(mapping)
    summary.cache_size = len(mapping)
    summary.elapsed_seconds = time.perf_counter() - start
    return mapping, summary


def format_summary(summary: RunSummary, cache_path: Optional[Path] = None) -> str:
    """Render a human-readable summary block for the console."""
    lines = [
        "=== Summary ===",
        f"Total products: {summary.total}",
        f"Cached: {summary.cache_size}",
        f"Newly resolved: {summary.resolved}",
        f"Not found: {len(summary.not_found)}",
        f"Errors: {summary.error_count}",
    ]
    if summary.not_found:
        lines.append("")
        lines.append("No image found:")
        lines.extend(f"  - {url}" for url in summary.not_found)
    if summary.errors:
        lines.append("")
        lines.append("Errors:")
        lines.extend(f"  - {url}: {reason}" for url, reason in summary.errors)
    if cache_path is not None:
        lines.append("")
        lines.append(f"Cache saved to: {cache_path}")
    return "\n".join(lines)

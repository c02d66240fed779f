"""MCP server exposing preview-resolver lookup/resolve tools."""

from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from .cache import CacheStore
from .config import ResolverConfig
from .fetcher import PageFetcher
from .models import Outcome
from .resolver import resolve_one

logger = logging.getLogger("preview_resolver.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="preview-resolver")


@mcp.tool()
async def resolve_preview(
    url: str,
) -> str:
    """Fetch a page and return the absolute URL of its preview image."""

    config = ResolverConfig.from_env()
    with PageFetcher(timeout=config.timeout, max_redirects=config.max_redirects) as fetcher:
        result = resolve_one(url, fetcher)
    if result.outcome is Outcome.FETCH_ERROR:
        raise RuntimeError(f"Failed to fetch {url}: {result.error}")
    if result.image_url is None:
        raise RuntimeError(f"No preview image found for {url}")
    return result.image_url


@mcp.tool()
async def lookup_preview(
    url: str,
) -> str:
    """Return the cached preview image for a source URL, or an empty string."""

    store = CacheStore(ResolverConfig.from_env().cache_path)
    return store.get(store.load(), url) or ""


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()

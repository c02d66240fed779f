from typing import Dict, List, Union

import pytest

from preview_resolver.fetcher import FetchError


class FakeFetcher:
    """Stand-in for PageFetcher serving canned markup or errors per URL."""

    def __init__(self, pages: Dict[str, Union[str, Exception]]):
        self.pages = pages
        self.calls: List[str] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None

    def fetch(self, url: str) -> str:
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError(url, "http-status", "HTTP 404", status=404)
        if isinstance(page, Exception):
            raise page
        return page


def og_page(image: str) -> str:
    return f'<html><head><meta property="og:image" content="{image}"></head><body></body></html>'


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / "data" / "thumbnails.json"

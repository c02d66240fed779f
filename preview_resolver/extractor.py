"""Heuristics for locating a representative preview image in page markup."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Optional, Sequence
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

logger = logging.getLogger("preview_resolver")

EXCLUDED_IMAGE_KEYWORDS = ("logo", "icon", "avatar")


def resolve_url(value: str, base_url: str) -> str:
    """Turn a discovered image reference into an absolute URL."""
    value = value.strip()
    if urlsplit(value).scheme:
        return value
    if value.startswith("//"):
        return "https:" + value
    return urljoin(base_url, value)


class ExtractionStrategy:
    """One rule for finding an image reference in a parsed document."""

    name = "strategy"

    def attempt(self, document: BeautifulSoup, base_url: str) -> Optional[str]:
        raise NotImplementedError


class MetaTagStrategy(ExtractionStrategy):
    """Read the ``content`` of a ``<meta>`` tag such as ``og:image``."""

    def __init__(self, key: str, attrs: Sequence[str] = ("property",)) -> None:
        self.key = key
        self.attrs = tuple(attrs)
        self.name = key

    def _matches(self, tag) -> bool:
        if tag.name != "meta":
            return False
        for attr in self.attrs:
            value = tag.get(attr)
            if isinstance(value, str) and value.strip().lower() == self.key:
                return True
        return False

    def attempt(self, document: BeautifulSoup, base_url: str) -> Optional[str]:
        for tag in document.find_all(self._matches):
            content = (tag.get("content") or "").strip()
            if content:
                return content
        return None


def _image_value(image: Any) -> Optional[str]:
    if isinstance(image, (list, tuple)):
        if not image:
            return None
        image = image[0]
    if isinstance(image, dict):
        image = image.get("url") or image.get("contentUrl")
    if isinstance(image, str) and image.strip():
        return image
    return None


def _iter_nodes(data: Any) -> Iterable[dict]:
    if isinstance(data, dict):
        yield data
        graph = data.get("@graph")
        if isinstance(graph, list):
            for node in graph:
                if isinstance(node, dict):
                    yield node
    elif isinstance(data, list):
        for node in data:
            if isinstance(node, dict):
                yield node


class JsonLdStrategy(ExtractionStrategy):
    """Use the ``image`` field of the first JSON-LD block on the page."""

    name = "json-ld"

    def attempt(self, document: BeautifulSoup, base_url: str) -> Optional[str]:
        script = document.find(
            "script",
            type=lambda t: bool(t) and t.strip().lower() == "application/ld+json",
        )
        if script is None:
            return None
        try:
            data = json.loads(script.string or script.get_text() or "")
        except (ValueError, RecursionError):
            logger.debug("Ignoring malformed JSON-LD on %s", base_url)
            return None

        for node in _iter_nodes(data):
            if "image" in node:
                return _image_value(node["image"])
        return None


def _declared_dimension(value: Any) -> int:
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return 0


class LargestImageStrategy(ExtractionStrategy):
    """Pick the inline ``<img>`` with the largest declared width x height."""

    name = "largest-image"

    def __init__(self, excluded: Sequence[str] = EXCLUDED_IMAGE_KEYWORDS) -> None:
        self.excluded = tuple(excluded)

    def attempt(self, document: BeautifulSoup, base_url: str) -> Optional[str]:
        best: Optional[str] = None
        best_area = -1
        for img in document.find_all("img"):
            src = (img.get("src") or "").strip()
            if not src or src.startswith("data:"):
                continue
            if any(keyword in src for keyword in self.excluded):
                continue
            area = _declared_dimension(img.get("width")) * _declared_dimension(img.get("height"))
            # Strict comparison keeps the earliest image on ties.
            if area > best_area:
                best = src
                best_area = area
        return best


DEFAULT_STRATEGIES: List[ExtractionStrategy] = [
    MetaTagStrategy("og:image", attrs=("property",)),
    MetaTagStrategy("twitter:image", attrs=("name", "property")),
    JsonLdStrategy(),
    LargestImageStrategy(),
]


def extract_image_url(
    markup: str,
    base_url: str,
    strategies: Optional[Sequence[ExtractionStrategy]] = None,
) -> Optional[str]:
    """Return the absolute URL of the best preview image, or ``None``."""
    document = BeautifulSoup(markup or "", "html.parser")
    for strategy in strategies if strategies is not None else DEFAULT_STRATEGIES:
        candidate = strategy.attempt(document, base_url)
        if candidate:
            logger.debug("Strategy %s matched %s", strategy.name, candidate)
            return resolve_url(candidate, base_url)
    return None

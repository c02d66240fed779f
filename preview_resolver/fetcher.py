"""HTTP page retrieval with bounded redirect following."""

from __future__ import annotations

import logging
import time
from typing import Dict, List, Mapping, Optional, Set
from urllib.parse import urljoin, urlsplit

import requests
from bs4 import UnicodeDammit
from urllib3.exceptions import ReadTimeoutError

from .config import DEFAULT_MAX_REDIRECTS, DEFAULT_TIMEOUT

logger = logging.getLogger("preview_resolver")

DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,nl;q=0.8",
}

SUPPORTED_SCHEMES = {"http", "https"}
CHUNK_SIZE = 16 * 1024


class FetchError(Exception):
    """Raised when a page cannot be retrieved.

    ``kind`` is one of ``"timeout"``, ``"http-status"``, ``"connection"`` or
    ``"redirect"``; ``status`` carries the HTTP status for ``"http-status"``.
    """

    def __init__(
        self,
        url: str,
        kind: str,
        message: str,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.kind = kind
        self.status = status


def _is_redirect(status: int, location: Optional[str]) -> bool:
    return 300 <= status < 400 and bool(location)


def _decode(body: bytes, content_type: str, encoding: Optional[str]) -> str:
    """Decode a page body, sniffing the markup when no charset is declared."""
    if encoding and "charset" in content_type.lower():
        try:
            return body.decode(encoding, errors="replace")
        except LookupError:
            logger.debug("Unknown declared charset %s", encoding)
    dammit = UnicodeDammit(body, user_encodings=["utf-8"], is_html=True)
    if dammit.unicode_markup is None:
        return body.decode("utf-8", errors="replace")
    return dammit.unicode_markup


class PageFetcher:
    """Retrieve raw page markup while presenting a browser-like identity.

    ``timeout`` is a single deadline for the whole fetch: every redirect hop
    and every body chunk is checked against it.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        session: Optional[requests.Session] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.headers = dict(DEFAULT_HEADERS if headers is None else headers)
        self._session = session or requests.Session()
        self.fetch_count = 0

    def __enter__(self) -> "PageFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def fetch(self, url: str) -> str:
        """Return the markup served for ``url`` after following redirects."""
        self.fetch_count += 1
        deadline = time.monotonic() + self.timeout
        visited: Set[str] = set()
        current = url

        while True:
            scheme = urlsplit(current).scheme.lower()
            if scheme not in SUPPORTED_SCHEMES:
                raise FetchError(url, "connection", f"Unsupported URL scheme: {scheme or '(none)'}")
            if current in visited:
                raise FetchError(url, "redirect", f"Redirect loop at {current}")
            visited.add(current)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise FetchError(url, "timeout", "Timeout")

            response = self._get(url, current, remaining)
            try:
                location = response.headers.get("Location")
                if _is_redirect(response.status_code, location):
                    if len(visited) > self.max_redirects:
                        raise FetchError(
                            url,
                            "redirect",
                            f"Too many redirects (more than {self.max_redirects})",
                        )
                    target = urljoin(current, location)
                    logger.debug("Redirect %s -> %s", current, target)
                    current = target
                    continue

                if not 200 <= response.status_code < 300:
                    raise FetchError(
                        url,
                        "http-status",
                        f"HTTP {response.status_code}",
                        status=response.status_code,
                    )

                body = self._read_body(url, response, deadline)
                return _decode(
                    body,
                    response.headers.get("Content-Type", ""),
                    response.encoding,
                )
            finally:
                response.close()

    def _get(self, url: str, current: str, timeout: float) -> requests.Response:
        try:
            return self._session.get(
                current,
                headers=self.headers,
                timeout=timeout,
                allow_redirects=False,
                stream=True,
            )
        except requests.RequestException as exc:
            raise self._translate(url, exc) from exc

    def _read_body(self, url: str, response: requests.Response, deadline: float) -> bytes:
        chunks: List[bytes] = []
        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                chunks.append(chunk)
                if time.monotonic() >= deadline:
                    raise FetchError(url, "timeout", "Timeout")
        except requests.RequestException as exc:
            raise self._translate(url, exc) from exc
        return b"".join(chunks)

    @staticmethod
    def _translate(url: str, exc: requests.RequestException) -> FetchError:
        # requests wraps a read timeout during body streaming in ConnectionError.
        if isinstance(exc, requests.Timeout) or (
            exc.args and isinstance(exc.args[0], ReadTimeoutError)
        ):
            return FetchError(url, "timeout", "Timeout")
        return FetchError(url, "connection", f"{type(exc).__name__}: {exc}")

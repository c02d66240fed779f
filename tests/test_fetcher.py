"""Tests for PageFetcher redirect, status and timeout handling."""

from unittest.mock import MagicMock, patch

import pytest
import requests
from urllib3.exceptions import ReadTimeoutError

from preview_resolver.fetcher import DEFAULT_HEADERS, FetchError, PageFetcher


def _response(status=200, text="", location=None, content_type="text/html; charset=utf-8"):
    response = MagicMock()
    response.status_code = status
    response.iter_content.return_value = [text.encode("utf-8")] if text else []
    response.encoding = "utf-8"
    response.headers = {"Content-Type": content_type}
    if location is not None:
        response.headers["Location"] = location
    return response


def _fetcher(*responses, **kwargs):
    session = MagicMock()
    session.get.side_effect = list(responses)
    return PageFetcher(session=session, **kwargs), session


def test_returns_markup_on_200():
    fetcher, session = _fetcher(_response(200, "<html>ok</html>"))
    assert fetcher.fetch("https://site/a") == "<html>ok</html>"
    assert fetcher.fetch_count == 1


def test_sends_browser_identity_without_automatic_redirects():
    fetcher, session = _fetcher(_response(200, "ok"))
    fetcher.fetch("https://site/a")

    args, kwargs = session.get.call_args
    assert args[0] == "https://site/a"
    assert kwargs["headers"]["User-Agent"].startswith("Mozilla/5.0")
    assert kwargs["headers"]["Accept"] == DEFAULT_HEADERS["Accept"]
    assert "Accept-Language" in kwargs["headers"]
    assert kwargs["allow_redirects"] is False
    assert 0 < kwargs["timeout"] <= 15.0
    assert kwargs["stream"] is True


def test_follows_redirect_chain():
    fetcher, session = _fetcher(
        _response(301, location="https://site/b"),
        _response(302, location="/c"),
        _response(200, "final"),
    )
    assert fetcher.fetch("https://site/a") == "final"
    requested = [call.args[0] for call in session.get.call_args_list]
    assert requested == ["https://site/a", "https://site/b", "https://site/c"]


def test_redirect_loop_terminates():
    fetcher, session = _fetcher(
        _response(302, location="https://site/b"),
        _response(302, location="https://site/a"),
    )
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://site/a")
    assert excinfo.value.kind == "redirect"
    assert session.get.call_count == 2


def test_too_many_redirects():
    fetcher, session = _fetcher(
        _response(302, location="https://site/1"),
        _response(302, location="https://site/2"),
        _response(302, location="https://site/3"),
        max_redirects=2,
    )
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://site/a")
    assert excinfo.value.kind == "redirect"
    assert session.get.call_count == 3


def test_redirect_without_location_is_status_error():
    fetcher, _ = _fetcher(_response(302))
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://site/a")
    assert excinfo.value.kind == "http-status"
    assert excinfo.value.status == 302


@pytest.mark.parametrize("status", [304, 404, 500])
def test_non_2xx_status_fails(status):
    fetcher, _ = _fetcher(_response(status, "nope"))
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://site/a")
    assert excinfo.value.kind == "http-status"
    assert excinfo.value.status == status
    assert str(excinfo.value) == f"HTTP {status}"


def test_request_timeout():
    session = MagicMock()
    session.get.side_effect = requests.Timeout("read timed out")
    fetcher = PageFetcher(session=session)
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://site/a")
    assert excinfo.value.kind == "timeout"
    assert str(excinfo.value) == "Timeout"


def test_deadline_spans_redirects():
    fetcher, session = _fetcher(_response(302, location="https://site/b"), timeout=15.0)
    clock = iter([0.0, 0.0])
    with patch("preview_resolver.fetcher.time.monotonic", side_effect=lambda: next(clock, 20.0)):
        with pytest.raises(FetchError) as excinfo:
            fetcher.fetch("https://site/a")
    assert excinfo.value.kind == "timeout"
    assert session.get.call_count == 1


def test_connection_error():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("refused")
    fetcher = PageFetcher(session=session)
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("http://site/a")
    assert excinfo.value.kind == "connection"
    assert "refused" in str(excinfo.value)


def test_unsupported_scheme_is_rejected_before_request():
    fetcher, session = _fetcher()
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("ftp://site/a")
    assert excinfo.value.kind == "connection"
    session.get.assert_not_called()


def test_slow_body_hits_overall_deadline():
    response = _response(200)
    response.iter_content.return_value = iter([b"<html>", b"<body>", b"</html>"])
    fetcher, _ = _fetcher(response, timeout=1.0)
    clock = iter([0.0, 0.0, 0.5])
    with patch("preview_resolver.fetcher.time.monotonic", side_effect=lambda: next(clock, 1.5)):
        with pytest.raises(FetchError) as excinfo:
            fetcher.fetch("https://site/a")
    assert excinfo.value.kind == "timeout"
    response.close.assert_called_once()


def test_read_timeout_while_streaming_is_a_timeout():
    response = _response(200)
    response.iter_content.side_effect = requests.ConnectionError(
        ReadTimeoutError(None, "https://site/a", "Read timed out.")
    )
    fetcher, _ = _fetcher(response)
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://site/a")
    assert excinfo.value.kind == "timeout"
    assert str(excinfo.value) == "Timeout"


def test_broken_stream_is_a_connection_error():
    response = _response(200)
    response.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("incomplete read")
    fetcher, _ = _fetcher(response)
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://site/a")
    assert excinfo.value.kind == "connection"


def test_any_3xx_with_location_is_followed():
    fetcher, session = _fetcher(
        _response(300, location="https://site/choice"),
        _response(200, "picked"),
    )
    assert fetcher.fetch("https://site/a") == "picked"
    assert session.get.call_count == 2


def test_declared_charset_is_used():
    response = _response(200, content_type="text/html; charset=iso-8859-1")
    response.encoding = "ISO-8859-1"
    response.iter_content.return_value = ["<p>café</p>".encode("latin-1")]
    fetcher, _ = _fetcher(response)
    assert fetcher.fetch("https://site/a") == "<p>café</p>"


def test_missing_charset_sniffs_markup():
    body = '<html><head><meta charset="windows-1252"></head><body>café</body></html>'
    response = _response(200, content_type="text/html")
    response.encoding = "ISO-8859-1"
    response.iter_content.return_value = [body.encode("cp1252")]
    fetcher, _ = _fetcher(response)
    assert "café" in fetcher.fetch("https://site/a")


def test_missing_charset_utf8_body():
    response = _response(200, "<p>café</p>", content_type="text/html")
    response.encoding = None
    fetcher, _ = _fetcher(response)
    assert fetcher.fetch("https://site/a") == "<p>café</p>"


def test_context_manager_closes_session():
    session = MagicMock()
    with PageFetcher(session=session):
        pass
    session.close.assert_called_once()

"""Unit tests for the static file request handler."""

import logging
from pathlib import Path

import pytest

from handlers.static_handler import NOT_FOUND_BODY, StaticFileHandler
from request import HTTPRequest
from resolver import StaticFileResolver


def _build_request(path: str, method: str = "GET") -> HTTPRequest:
    return HTTPRequest(
        method=method,
        path=path,
        http_version="HTTP/1.1",
        headers={"host": "localhost"},
        body=b"",
    )


@pytest.fixture
def handler(tmp_path: Path) -> StaticFileHandler:
    (tmp_path / "index.html").write_text("<h1>Static file is working</h1>")
    (tmp_path / "script.js").write_text("console.log('hi');")
    (tmp_path / "image.png").write_bytes(b"\x89PNG\r\n")
    (tmp_path / "with space.txt").write_text("spaced")
    return StaticFileHandler(StaticFileResolver(tmp_path))


def test_serve_existing_static_file(handler: StaticFileHandler) -> None:
    response = handler(_build_request("/index.html"))

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/html; charset=utf-8"
    assert b"Static file is working" in response.body


def test_javascript_content_type_starts_with_text_javascript(handler: StaticFileHandler) -> None:
    response = handler(_build_request("/script.js"))

    assert response.headers["Content-Type"].startswith("text/javascript")


def test_binary_content_type_has_no_charset(handler: StaticFileHandler) -> None:
    response = handler(_build_request("/image.png"))

    assert response.headers["Content-Type"] == "image/png"
    assert response.body == b"\x89PNG\r\n"


def test_path_with_space_is_served(handler: StaticFileHandler) -> None:
    response = handler(_build_request("/with space.txt"))

    assert response.status_code == 200
    assert response.body == b"spaced"


def test_missing_static_file_returns_404(
    handler: StaticFileHandler, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.DEBUG, logger="handlers.static_handler"):
        response = handler(_build_request("/does-not-exist.css"))

    assert response.status_code == 404
    assert response.body == NOT_FOUND_BODY.encode()
    assert "does-not-exist.css" in caplog.text


def test_traversal_attempt_returns_404_without_detail(handler: StaticFileHandler) -> None:
    response = handler(_build_request("/../etc/passwd"))

    assert response.status_code == 404
    assert response.body == NOT_FOUND_BODY.encode()


def test_head_returns_headers_without_body(handler: StaticFileHandler) -> None:
    get_response = handler(_build_request("/index.html"))
    head_response = handler(_build_request("/index.html", method="HEAD"))

    assert head_response.status_code == 200
    assert head_response.body == b""
    assert head_response.content_length_override == len(get_response.body)
    assert head_response.headers["Content-Type"] == get_response.headers["Content-Type"]


@pytest.mark.parametrize("method", ["POST", "PUT", "DELETE"])
def test_other_methods_return_405(handler: StaticFileHandler, method: str) -> None:
    response = handler(_build_request("/index.html", method=method))

    assert response.status_code == 405
    assert response.headers["Allow"] == "GET, HEAD"

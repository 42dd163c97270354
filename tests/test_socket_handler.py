"""Unit tests for socket framing helpers."""

import socket

import pytest

from config import MAX_BODY_BYTES, MAX_HEADER_BYTES
from response import HTTPResponse
from socket_handler import (
    HeaderTooLargeError,
    MalformedRequestError,
    PayloadTooLargeError,
    SocketTimeoutError,
    extract_http_request_message,
    read_http_request_message,
    write_http_response_message,
)


def test_extract_returns_none_until_headers_complete() -> None:
    assert extract_http_request_message(b"GET / HTTP/1.1\r\nHost: x\r\n") is None


def test_extract_splits_pipelined_requests() -> None:
    first = b"GET /a HTTP/1.1\r\nHost: x\r\n\r\n"
    second = b"GET /b HTTP/1.1\r\nHost: x\r\n\r\n"

    assert extract_http_request_message(first + second) == (first, second)


def test_extract_waits_for_declared_body() -> None:
    head = b"GET / HTTP/1.1\r\nHost: x\r\nContent-Length: 4\r\n\r\n"

    assert extract_http_request_message(head + b"ab") is None
    assert extract_http_request_message(head + b"abcd") == (head + b"abcd", b"")


def test_extract_rejects_oversized_headers() -> None:
    with pytest.raises(HeaderTooLargeError):
        extract_http_request_message(b"GET / HTTP/1.1\r\nX: " + b"a" * MAX_HEADER_BYTES)


def test_extract_rejects_oversized_body() -> None:
    head = f"GET / HTTP/1.1\r\nHost: x\r\nContent-Length: {MAX_BODY_BYTES + 1}\r\n\r\n"

    with pytest.raises(PayloadTooLargeError):
        extract_http_request_message(head.encode("ascii"))


def test_extract_rejects_chunked_bodies() -> None:
    raw = b"GET / HTTP/1.1\r\nHost: x\r\nTransfer-Encoding: chunked\r\n\r\n"

    with pytest.raises(MalformedRequestError):
        extract_http_request_message(raw)


def test_read_request_and_carry_over() -> None:
    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        client_side.sendall(
            b"GET /a HTTP/1.1\r\nHost: x\r\n\r\nGET /b HTTP/1.1\r\nHost: x\r\n\r\n"
        )

        first, carry = read_http_request_message(server_side)
        second, carry = read_http_request_message(server_side, carry)

    assert first.startswith(b"GET /a ")
    assert second.startswith(b"GET /b ")
    assert carry == b""


def test_read_returns_empty_on_clean_close() -> None:
    server_side, client_side = socket.socketpair()
    with server_side:
        client_side.close()

        assert read_http_request_message(server_side) == (b"", b"")


def test_read_raises_on_truncated_request() -> None:
    server_side, client_side = socket.socketpair()
    with server_side:
        client_side.sendall(b"GET / HTTP/1.1\r\n")
        client_side.close()

        with pytest.raises(MalformedRequestError):
            read_http_request_message(server_side)


def test_read_times_out_on_partial_request() -> None:
    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        server_side.settimeout(0.05)
        client_side.sendall(b"GET / HTTP/1.1\r\n")

        with pytest.raises(SocketTimeoutError):
            read_http_request_message(server_side)


def test_write_response_returns_bytes_sent() -> None:
    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        response = HTTPResponse(status_code=200, body="hi")

        sent = write_http_response_message(server_side, response)
        received = client_side.recv(4096)

    assert sent == len(received)
    assert received.endswith(b"\r\n\r\nhi")

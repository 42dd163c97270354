"""Parse framed HTTP/1.x request bytes into the fields the file server uses."""

from dataclasses import dataclass, field
from urllib.parse import unquote

from config import MAX_BODY_BYTES, MAX_TARGET_LENGTH

ALLOWED_HTTP_VERSIONS = {"HTTP/1.1", "HTTP/1.0"}
KNOWN_METHODS = {
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "DELETE",
    "OPTIONS",
    "PATCH",
    "TRACE",
    "CONNECT",
}


class HTTPRequestParseError(ValueError):
    """Request parse error carrying an HTTP status code."""

    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class HTTPRequest:
    """A parsed request. ``path`` is percent-decoded, without query or fragment."""

    method: str
    path: str
    http_version: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    keep_alive: bool = False

    @classmethod
    def from_bytes(cls, raw: bytes) -> "HTTPRequest":
        head, separator, body = raw.partition(b"\r\n\r\n")
        if not separator:
            raise HTTPRequestParseError("Missing CRLF CRLF request separator")

        request_line, *header_lines = head.decode("iso-8859-1").split("\r\n")
        method, target, http_version = _parse_request_line(request_line)
        headers = _parse_headers(header_lines)

        if http_version == "HTTP/1.1" and "host" not in headers:
            raise HTTPRequestParseError("Host header required for HTTP/1.1")
        _check_body(headers, body)

        return cls(
            method=method,
            path=decode_target_path(target),
            http_version=http_version,
            headers=headers,
            body=body,
            keep_alive=_is_keep_alive(http_version, headers.get("connection", "")),
        )


def decode_target_path(target: str) -> str:
    """Strip query and fragment from an origin-form target and percent-decode it.

    The target is not passed through ``urlsplit``: a leading ``//`` is an
    empty segment here, not an authority.
    """
    raw_path = target.split("?", 1)[0].split("#", 1)[0]
    return unquote(raw_path) or "/"


def _parse_request_line(line: str) -> tuple[str, str, str]:
    if not line:
        raise HTTPRequestParseError("Missing request line")

    parts = line.split(" ")
    if len(parts) != 3:
        raise HTTPRequestParseError("Invalid request line")
    method, target, http_version = parts
    if not method or not target or not http_version:
        raise HTTPRequestParseError("Request line contains empty tokens")

    method = method.upper()
    if method not in KNOWN_METHODS:
        raise HTTPRequestParseError("Method not implemented", status_code=501)
    if http_version not in ALLOWED_HTTP_VERSIONS:
        raise HTTPRequestParseError("Unsupported HTTP version", status_code=505)
    if len(target) > MAX_TARGET_LENGTH:
        raise HTTPRequestParseError("Request target too long", status_code=414)
    if not target.startswith("/"):
        raise HTTPRequestParseError("Request target must be an absolute path")
    return method, target, http_version


def _parse_headers(lines: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for line in lines:
        if not line:
            continue
        name, colon, value = line.partition(":")
        if not colon:
            raise HTTPRequestParseError("Malformed header line")
        name = name.strip().lower()
        if not name:
            raise HTTPRequestParseError("Header name cannot be empty")
        headers[name] = value.strip()
    return headers


def _check_body(headers: dict[str, str], body: bytes) -> None:
    # Bodies are framed for keep-alive and then ignored; only GET/HEAD are served.
    if "transfer-encoding" in headers:
        raise HTTPRequestParseError("Transfer-Encoding request bodies are not accepted")

    if "content-length" in headers:
        try:
            declared = int(headers["content-length"])
        except ValueError as exc:
            raise HTTPRequestParseError("Invalid Content-Length") from exc
        if declared < 0:
            raise HTTPRequestParseError("Negative Content-Length is invalid")
        if len(body) != declared:
            raise HTTPRequestParseError("Body length does not match Content-Length")

    if len(body) > MAX_BODY_BYTES:
        raise HTTPRequestParseError("Body exceeded MAX_BODY_BYTES", status_code=413)


def _is_keep_alive(http_version: str, connection_header: str) -> bool:
    token = connection_header.lower()
    if http_version == "HTTP/1.1":
        return "close" not in token
    if http_version == "HTTP/1.0":
        return "keep-alive" in token
    return False

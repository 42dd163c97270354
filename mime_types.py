"""Read-only extension to MIME type table and lookup helpers."""

from __future__ import annotations

import mimetypes
from collections.abc import Mapping
from pathlib import PurePosixPath
from types import MappingProxyType

DEFAULT_MIME_TYPE: str = "application/octet-stream"

# Web types whose interpreter default differs between Python releases.
WEB_OVERRIDES: dict[str, str] = {
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".ico": "image/vnd.microsoft.icon",
    ".webp": "image/webp",
    ".wasm": "application/wasm",
    ".woff2": "font/woff2",
    ".txt": "text/plain",
    ".md": "text/markdown",
}

_CHARSET_TYPES = {"application/json", "application/javascript"}


def _normalize_extension(extension: str) -> str:
    lowered = extension.strip().lower()
    if not lowered.startswith("."):
        lowered = f".{lowered}"
    return lowered


def build_mime_table(overrides: Mapping[str, str] | None = None) -> Mapping[str, str]:
    """Build an immutable table from the interpreter defaults plus overrides.

    ``mimetypes.MimeTypes()`` only loads the built-in defaults, so the table
    does not depend on the host's ``/etc/mime.types``.
    """
    builtin = mimetypes.MimeTypes()
    table: dict[str, str] = {}
    for extension, mime_type in builtin.types_map[True].items():
        table[_normalize_extension(extension)] = mime_type
    for extension, mime_type in WEB_OVERRIDES.items():
        table[_normalize_extension(extension)] = mime_type
    for extension, mime_type in (overrides or {}).items():
        if not mime_type:
            raise ValueError(f"empty MIME type for extension {extension!r}")
        table[_normalize_extension(extension)] = mime_type
    return MappingProxyType(table)


MIME_TYPES: Mapping[str, str] = build_mime_table()


def guess_mime_type(path: str | PurePosixPath, table: Mapping[str, str] = MIME_TYPES) -> str:
    """Return the MIME type for the extension after the last dot of the file name."""
    name = PurePosixPath(path).name
    _stem, dot, extension = name.rpartition(".")
    if not dot or not extension:
        return DEFAULT_MIME_TYPE
    return table.get(f".{extension.lower()}", DEFAULT_MIME_TYPE)


def content_type_header(mime_type: str) -> str:
    if mime_type.startswith("text/") or mime_type in _CHARSET_TYPES:
        return f"{mime_type}; charset=utf-8"
    return mime_type

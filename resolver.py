"""Map request paths to files under a fixed root directory."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from config import INDEX_FILE
from mime_types import MIME_TYPES, guess_mime_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Found:
    content: bytes
    mime_type: str
    path: Path


@dataclass(frozen=True, slots=True)
class NotFound:
    """Lookup miss. ``reason`` is for server logs and is never sent to clients."""

    reason: str


ResolveResult = Found | NotFound


def normalize_request_path(request_path: str) -> tuple[str, ...] | None:
    """Split a decoded URL path into safe segments, or None if it climbs above root."""
    if "\x00" in request_path:
        return None

    segments: list[str] = []
    for segment in request_path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                return None
            segments.pop()
            continue
        segments.append(segment)
    return tuple(segments)


class StaticFileResolver:
    """Resolve request paths to file content and MIME type under ``root``."""

    def __init__(
        self,
        root: str | Path,
        mime_types: Mapping[str, str] = MIME_TYPES,
        *,
        index_file: str = INDEX_FILE,
    ) -> None:
        resolved_root = Path(root).resolve()
        if not resolved_root.is_dir():
            raise ValueError(f"root must be an existing directory: {root}")
        self._root = resolved_root
        self._mime_types = mime_types
        self._index_file = index_file

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, request_path: str) -> ResolveResult:
        segments = normalize_request_path(request_path)
        if segments is None:
            return NotFound(f"path escapes root: {request_path!r}")

        candidate = self._root.joinpath(*segments)
        try:
            if candidate.is_dir():
                candidate = candidate / self._index_file
            real_path = candidate.resolve()
            real_path.relative_to(self._root)
            is_file = real_path.is_file()
        except ValueError:
            return NotFound(f"resolved outside root: {request_path!r}")
        except (OSError, RuntimeError) as exc:
            # RuntimeError: symlink loop on interpreters before 3.13.
            return NotFound(f"cannot stat {candidate}: {exc}")

        if not is_file:
            return NotFound(f"no regular file at {candidate}")

        try:
            content = real_path.read_bytes()
        except OSError as exc:
            logger.debug("Read failed for %s: %s", real_path, exc)
            return NotFound(f"cannot read {real_path}: {exc}")

        return Found(
            content=content,
            mime_type=guess_mime_type(candidate.name, self._mime_types),
            path=real_path,
        )


def resolve(
    root: str | Path,
    request_path: str,
    mime_types: Mapping[str, str] = MIME_TYPES,
) -> ResolveResult:
    """One-shot form of ``StaticFileResolver(root, mime_types).resolve(request_path)``."""
    return StaticFileResolver(root, mime_types).resolve(request_path)

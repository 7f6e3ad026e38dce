"""Static-file resolution and content-type helpers for storefront assets."""

from __future__ import annotations

import posixpath
import re
import stat
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import unquote

INDEX_FILE = "index.html"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

MIME_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".txt": "text/plain; charset=utf-8",
}

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_LEADING_PARENT_SEGMENTS = re.compile(r"^(?:\.\.(?:[/\\]|$))+")


class BadRequestPathError(ValueError):
    """Raised when a request path cannot be decoded."""


def decode_request_path(request_path: str) -> str:
    """Drop the query string and percent-decode the remaining path."""
    path = request_path.split("?", 1)[0]
    if _MALFORMED_ESCAPE.search(path):
        raise BadRequestPathError(f"Malformed percent escape in path: {path!r}")

    try:
        decoded = unquote(path, errors="strict")
    except UnicodeDecodeError as error:
        raise BadRequestPathError("Percent escapes are not valid UTF-8") from error

    if "\x00" in decoded:
        raise BadRequestPathError("Decoded path contains a NUL byte")
    return decoded


def normalize_request_path(decoded_path: str) -> str:
    """Collapse dot segments and strip leading parent-directory segments.

    The result is relative to a base directory; the root path maps to the
    directory index file.
    """
    normalized = posixpath.normpath(decoded_path)
    previous = None
    while previous != normalized:
        previous = normalized
        normalized = _LEADING_PARENT_SEGMENTS.sub("", normalized)

    relative = normalized.lstrip("/")
    if not relative:
        return INDEX_FILE
    return relative


def resolve_static_file(
    request_path: str,
    base_dirs: Iterable[Path],
    *,
    confine: bool = True,
) -> Optional[Path]:
    """Resolve a request path to an existing file under the first matching base.

    Base directories are searched in order. A directory hit is served through
    its ``index.html`` when present, otherwise the search moves on. Missing
    paths are skipped; any other filesystem error propagates. With ``confine``
    the real path of a hit must lie under one of the base directories.

    Raises:
        BadRequestPathError: the path has malformed percent escapes.
        OSError: probing a candidate failed for a reason other than absence.
    """
    relative = normalize_request_path(decode_request_path(request_path))
    base_dirs = tuple(Path(base_dir) for base_dir in base_dirs)

    for base_dir in base_dirs:
        candidate = base_dir / relative
        mode = _probe(candidate)
        if mode is None:
            continue

        if stat.S_ISREG(mode):
            found = candidate
        elif stat.S_ISDIR(mode):
            index_path = candidate / INDEX_FILE
            index_mode = _probe(index_path)
            if index_mode is None or not stat.S_ISREG(index_mode):
                continue
            found = index_path
        else:
            continue

        if confine and not any(_is_within(base, found) for base in base_dirs):
            continue
        return found

    return None


def guess_content_type(path: Path) -> str:
    """Map a file extension (case-insensitive) to an HTTP content type."""
    return MIME_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


def _probe(path: Path) -> Optional[int]:
    try:
        return path.stat().st_mode
    except (FileNotFoundError, NotADirectoryError):
        return None


def _is_within(base_dir: Path, path: Path) -> bool:
    root = base_dir.resolve()
    return root in path.resolve().parents

"""Content-type detection for uploaded report files.

Binary formats (images, wasm, fonts) are identified from their magic bytes
with ``filetype``.  Text formats carry no signature, so the file extension
decides for HTML, CSS, JavaScript and JSON.
"""

from __future__ import annotations

import mimetypes

import filetype

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Extensions whose registry entry differs between platforms.
_OVERRIDES = {
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".wasm": "application/wasm",
    ".svg": "image/svg+xml",
}


def guess_from_path(path: str) -> str | None:
    """Content type implied by the file extension, or None if unknown."""
    suffix = path[path.rfind("."):].lower() if "." in path else ""
    if suffix in _OVERRIDES:
        return _OVERRIDES[suffix]
    return mimetypes.guess_type(path)[0]


def detect_content_type(data: bytes, path: str) -> str:
    """Sniff ``data`` first, then fall back to the extension of ``path``."""
    sniffed = filetype.guess_mime(data)
    if sniffed:
        return sniffed
    return guess_from_path(path) or DEFAULT_CONTENT_TYPE

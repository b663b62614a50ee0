"""Entry-page patcher — inline the bootstrap script right after ``<body>``.

The script must run before anything else on the page, so it goes
immediately after the opening body tag rather than before ``</body>``.
Everything outside the insertion point is preserved byte for byte.

Patching is not idempotent: a second call inserts a second block.  Use
:func:`is_patched` to check for the marker first.
"""

from __future__ import annotations

import re

from abspublish._errors import PatchError

MARKER = b"data-abspublish-sas"

_BODY_OPEN = re.compile(rb"<body(?:\s[^>]*)?>")


def script_block(source: str) -> bytes:
    """Wrap bootstrap source in a marked ``<script>`` element."""
    return b"\n<script " + MARKER + b">\n" + source.encode("utf-8") + b"\n</script>\n"


def patch_entry_page(html: bytes, source: str) -> bytes:
    """Insert the bootstrap script block after the first opening body tag.

    Args:
        html: The entry page as served.
        source: Bootstrap script source, inserted verbatim.

    Returns:
        The patched page.

    Raises:
        PatchError: The page has no (case-sensitive) ``<body>`` tag.

    """
    match = _BODY_OPEN.search(html)
    if match is None:
        msg = "Malformed entry page: no <body> tag to attach the bootstrap script to"
        raise PatchError(msg)
    insert_at = match.end()
    return html[:insert_at] + script_block(source) + html[insert_at:]


def is_patched(html: bytes) -> bool:
    """True if the page already carries a bootstrap script block."""
    return b"<script " + MARKER + b">" in html

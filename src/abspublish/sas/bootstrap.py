"""Token persistence bootstrapper — client scripts and their URL algebra.

Two scripts ship with the package (``assets/``):

``sasHelper.js``
    Inlined into the entry page.  Captures the token from the URL once,
    re-attaches it with ``history.replaceState`` whenever an in-page
    navigation drops it, and registers the cache worker.

``appendSas.js``
    The cache worker.  Reads the token from its own registration URL and
    appends it to same-origin GET requests that lack it.

The Python helpers below render the scripts and read tokens back out of
report URLs for `abspublish inspect`.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from importlib.resources import files
from urllib.parse import parse_qsl, quote

from abspublish.sas.issuer import TOKEN_PARAMS

BOOTSTRAP_SCRIPT = "sasHelper.js"
WORKER_SCRIPT = "appendSas.js"

_PLACEHOLDER = "__TOKEN_PARAMS__"

# Characters encodeURIComponent leaves alone, beyond quote()'s defaults.
_URI_COMPONENT_SAFE = "!~*'()"


# ---------------------------------------------------------------------------
# Script rendering
# ---------------------------------------------------------------------------


def render_script(name: str, params: tuple[str, ...] = TOKEN_PARAMS) -> str:
    """Load a bundled script and bind the token parameter names into it."""
    source = files("abspublish.sas").joinpath("assets", name).read_text(encoding="utf-8")
    return source.replace(_PLACEHOLDER, json.dumps(list(params)))


def bootstrap_source(params: tuple[str, ...] = TOKEN_PARAMS) -> str:
    """Source of the entry-page bootstrap script."""
    return render_script(BOOTSTRAP_SCRIPT, params)


def worker_source(params: tuple[str, ...] = TOKEN_PARAMS) -> str:
    """Source of the cache-worker helper script."""
    return render_script(WORKER_SCRIPT, params)


# ---------------------------------------------------------------------------
# Query-string algebra
# ---------------------------------------------------------------------------


def _first_values(search: str) -> dict[str, str]:
    """Map each parameter name to its first value, like URLSearchParams.get."""
    values: dict[str, str] = {}
    for name, value in parse_qsl(search.lstrip("?"), keep_blank_values=True):
        values.setdefault(name, value)
    return values


def has_token(search: str, params: tuple[str, ...] = TOKEN_PARAMS) -> bool:
    """True iff every token parameter name occurs in the query string."""
    present = _first_values(search)
    return all(name in present for name in params)


def capture_token(search: str, params: tuple[str, ...] = TOKEN_PARAMS) -> str:
    """Extract the token as ``?name=value&...`` in canonical order, or ``""``."""
    if not has_token(search, params):
        return ""
    values = _first_values(search)
    return "?" + "&".join(
        f"{name}={quote(values[name], safe=_URI_COMPONENT_SAFE)}" for name in params
    )


def token_expiry(search: str) -> datetime | None:
    """Parse the signed-expiry (``se``) parameter, if present and well formed."""
    raw = _first_values(search).get("se")
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


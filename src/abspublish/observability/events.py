"""Event model for publish observability.

Defines event types for token issuance, entry-page patching and the
storage transfers of a publish or fetch run.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Signatures and account keys are never stored on an event.

"""

import time
from dataclasses import dataclass
from typing import Literal

from abspublish._types import CredentialMode


# ---------------------------------------------------------------------------
# Signing events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TokenIssued:
    """A SAS token was minted for the report URL.

    Attributes:
        mode: Credential path that signed the token.
        container: Container the token grants read access to.
        starts_on: ISO-8601 start of the validity window.
        expires_on: ISO-8601 end of the validity window.
        parameters: Names of the signed query parameters, in order.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    mode: CredentialMode
    container: str
    starts_on: str
    expires_on: str
    parameters: tuple[str, ...]
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class EntryPagePatched:
    """The entry page received the inline bootstrap script.

    Attributes:
        path: Remote key of the patched page.
        inserted_bytes: Size of the inserted script block.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    inserted_bytes: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Storage events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ItemTransferred:
    """A single object was uploaded or downloaded.

    Attributes:
        kind: Transfer direction.
        path: Remote key of the object.
        local_path: Local file the bytes came from or went to.
        content_type: Content type sent with an upload (empty for downloads).
        size_bytes: Number of bytes transferred.
        duration_ms: Time taken in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: Literal["upload", "download"]
    path: str
    local_path: str
    content_type: str
    size_bytes: int
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class PageListed:
    """One page of a container listing was fetched.

    Attributes:
        path: Prefix that was listed.
        entries: Number of real objects on the page.
        skipped: Number of directory placeholders filtered out.
        is_last_page: True if the service reported no continuation.
        duration_ms: Time taken in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    entries: int
    skipped: int
    is_last_page: bool
    duration_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type PublishEvent = TokenIssued | EntryPagePatched | ItemTransferred | PageListed


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()

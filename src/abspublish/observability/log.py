"""Event log — the events of one publish or fetch run.

Keeps a bounded buffer of ``PublishEvent`` objects and folds them into the
``TransferStats`` printed in the run summary.

Thread Safety:
    All methods are protected by a ``threading.Lock``.

"""

import threading
from collections import deque
from dataclasses import dataclass

from abspublish.observability.events import (
    EntryPagePatched,
    ItemTransferred,
    PageListed,
    PublishEvent,
    TokenIssued,
)


@dataclass(frozen=True, slots=True)
class TransferStats:
    """Totals of a run.

    Attributes:
        uploads: Objects written, auxiliary uploads included.
        downloads: Objects read.
        bytes_uploaded: Payload bytes written.
        bytes_downloaded: Payload bytes read.
        pages_listed: Listing pages fetched.
        placeholders_skipped: Directory placeholders filtered from listings.
        entry_pages_patched: Entry pages that received the bootstrap script.
        token_issued: True if a SAS token was minted.

    """

    uploads: int = 0
    downloads: int = 0
    bytes_uploaded: int = 0
    bytes_downloaded: int = 0
    pages_listed: int = 0
    placeholders_skipped: int = 0
    entry_pages_patched: int = 0
    token_issued: bool = False


class EventLog:
    """Bounded event store for a single run.

    When the buffer is full the oldest events are dropped, so ``stats()``
    covers at most the last ``max_events`` events.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_events", "_lock")

    def __init__(self, max_events: int = 10_000) -> None:
        self._events: deque[PublishEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: PublishEvent) -> None:
        """Record an event in the log."""
        with self._lock:
            self._events.append(event)

    def events(self) -> list[PublishEvent]:
        """Snapshot of the stored events, oldest first."""
        with self._lock:
            return list(self._events)

    def of_type[E](self, event_type: type[E]) -> list[E]:
        """Stored events of one type, oldest first."""
        return [event for event in self.events() if isinstance(event, event_type)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> TransferStats:
        """Fold the stored events into run totals."""
        uploads = downloads = bytes_uploaded = bytes_downloaded = 0
        pages = skipped = patched = 0
        token_issued = False
        for event in self.events():
            match event:
                case ItemTransferred(kind="upload", size_bytes=size):
                    uploads += 1
                    bytes_uploaded += size
                case ItemTransferred(size_bytes=size):
                    downloads += 1
                    bytes_downloaded += size
                case PageListed(skipped=placeholders):
                    pages += 1
                    skipped += placeholders
                case EntryPagePatched():
                    patched += 1
                case TokenIssued():
                    token_issued = True

        return TransferStats(
            uploads=uploads,
            downloads=downloads,
            bytes_uploaded=bytes_uploaded,
            bytes_downloaded=bytes_downloaded,
            pages_listed=pages,
            placeholders_skipped=skipped,
            entry_pages_patched=patched,
            token_issued=token_issued,
        )

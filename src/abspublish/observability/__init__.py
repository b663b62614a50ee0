"""Publish observability — structured events for signing and storage work.

Records:
- **Signing**: token issuance (window and parameter names only)
- **Patching**: entry-page bootstrap injection
- **Storage**: uploads, downloads and listing pages

All events are frozen dataclasses with nanosecond timestamps.

Quick Start:
    >>> from abspublish.observability import PublishCollector
    >>> collector = PublishCollector()
    >>> # Pass collector to AbsPublisherPlugin via PluginCreateOptions,
    >>> # then read collector.log.stats() after the run.

"""

from abspublish.observability.collector import PublishCollector
from abspublish.observability.events import (
    EntryPagePatched,
    ItemTransferred,
    PageListed,
    PublishEvent,
    TokenIssued,
    now_ns,
)
from abspublish.observability.log import EventLog, TransferStats

__all__ = [
    "EntryPagePatched",
    "EventLog",
    "ItemTransferred",
    "PageListed",
    "PublishCollector",
    "PublishEvent",
    "TokenIssued",
    "TransferStats",
    "now_ns",
]

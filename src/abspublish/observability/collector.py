"""Publish collector — records signing and storage events into an EventLog.

The plugin and the generic publisher call the ``record_*`` methods as
they work; callers read the results back from ``collector.log``.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from abspublish.observability.events import (
    EntryPagePatched,
    ItemTransferred,
    PageListed,
    TokenIssued,
    now_ns,
)
from abspublish.observability.log import EventLog

if TYPE_CHECKING:
    from abspublish.sas.issuer import AccessToken


class PublishCollector:
    """Event collector for a publish or fetch run.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Signing events -----

    def record_token(self, token: AccessToken, *, container: str) -> None:
        """Record a token issuance without its signature."""
        self._log.append(
            TokenIssued(
                mode=token.mode,
                container=container,
                starts_on=token.starts_on.isoformat(),
                expires_on=token.expires_on.isoformat(),
                parameters=token.names,
                timestamp_ns=now_ns(),
            )
        )

    def record_patch(self, path: str, *, inserted_bytes: int) -> None:
        """Record an entry-page patch."""
        self._log.append(
            EntryPagePatched(
                path=path,
                inserted_bytes=inserted_bytes,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Storage events -----

    def record_transfer(
        self,
        kind: str,
        path: str,
        *,
        local_path: str = "",
        content_type: str = "",
        size_bytes: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record an upload or download."""
        self._log.append(
            ItemTransferred(
                kind=kind,  # type: ignore[arg-type]
                path=path,
                local_path=local_path,
                content_type=content_type,
                size_bytes=size_bytes,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_listing(
        self,
        prefix: str,
        *,
        entries: int = 0,
        skipped: int = 0,
        is_last_page: bool = True,
        duration_ms: float = 0.0,
    ) -> None:
        """Record one listing page."""
        self._log.append(
            PageListed(
                path=prefix,
                entries=entries,
                skipped=skipped,
                is_last_page=is_last_page,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

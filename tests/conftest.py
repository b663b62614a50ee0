"""Shared test fixtures for abspublish.

The fakes below stand in for the async Azure clients.  They implement only
what the adapters call: ``upload_blob``, ``download_blob``, ``list_blobs``
with ``by_page``, ``get_user_delegation_key`` and ``close``.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
from azure.storage.blob import UserDelegationKey

from abspublish.config import PublishConfig
from abspublish.observability import EventLog, PublishCollector
from abspublish.publisher.base import WorkingDirs
from abspublish.publisher.plugin import AbsPublisherPlugin, PluginCreateOptions

ACCOUNT_URL = "https://acct.blob.core.example"
ACCOUNT_KEY = base64.b64encode(b"0123456789abcdef0123456789abcdef").decode()


def make_delegation_key() -> UserDelegationKey:
    """A user delegation key as returned by get_user_delegation_key."""
    key = UserDelegationKey()
    key.signed_oid = "00000000-0000-0000-0000-000000000001"
    key.signed_tid = "00000000-0000-0000-0000-000000000002"
    key.signed_start = "2026-03-01T12:30:15Z"
    key.signed_expiry = "2026-03-02T12:30:15Z"
    key.signed_service = "b"
    key.signed_version = "2021-08-06"
    key.value = ACCOUNT_KEY
    return key


# ---------------------------------------------------------------------------
# Fake storage clients
# ---------------------------------------------------------------------------


class FakeBlob(dict):
    """Dict-like listing entry with attribute access, like BlobProperties."""

    def __getattr__(self, name: str) -> Any:
        try:
            return self[name]
        except KeyError as exc:
            raise AttributeError(name) from exc


@dataclass
class StoredBlob:
    data: bytes
    content_type: str | None
    metadata: dict[str, str] = field(default_factory=dict)


class _FakeDownloader:
    def __init__(self, data: bytes) -> None:
        self._data = data

    async def readall(self) -> bytes:
        return self._data


class _FakePage:
    def __init__(self, blobs: list[FakeBlob]) -> None:
        self._blobs = iter(blobs)

    def __aiter__(self) -> _FakePage:
        return self

    async def __anext__(self) -> FakeBlob:
        try:
            return next(self._blobs)
        except StopIteration:
            raise StopAsyncIteration from None


class _FakePageIterator:
    """Async page iterator; ``continuation_token`` is the next page index."""

    def __init__(self, pages: list[list[FakeBlob]], start: int) -> None:
        self._pages = pages
        self._index = start
        self.continuation_token: str | None = None

    def __aiter__(self) -> _FakePageIterator:
        return self

    async def __anext__(self) -> _FakePage:
        if self._index >= len(self._pages):
            raise StopAsyncIteration
        page = self._pages[self._index]
        self._index += 1
        self.continuation_token = str(self._index) if self._index < len(self._pages) else None
        return _FakePage(page)


class _FakeItemPaged:
    def __init__(self, pages: list[list[FakeBlob]]) -> None:
        self._pages = pages

    def by_page(self, continuation_token: str | None = None) -> _FakePageIterator:
        return _FakePageIterator(self._pages, int(continuation_token or 0))


class FakeContainerClient:
    """In-memory container.

    ``page_size`` overrides ``results_per_page`` so tests can force
    multi-page listings without creating a thousand blobs.
    """

    def __init__(self, name: str) -> None:
        self.container_name = name
        self.blobs: dict[str, StoredBlob] = {}
        self.upload_calls: list[dict[str, Any]] = []
        self.list_calls: list[dict[str, Any]] = []
        self.page_size: int | None = None

    async def upload_blob(self, name: str, data: bytes, **kwargs: Any) -> None:
        self.upload_calls.append({"name": name, **kwargs})
        settings = kwargs.get("content_settings")
        self.blobs[name] = StoredBlob(
            data=bytes(data),
            content_type=getattr(settings, "content_type", None),
        )

    async def download_blob(self, name: str) -> _FakeDownloader:
        return _FakeDownloader(self.blobs[name].data)

    def list_blobs(
        self,
        name_starts_with: str | None = None,
        include: list[str] | None = None,
        results_per_page: int | None = None,
    ) -> _FakeItemPaged:
        self.list_calls.append({
            "name_starts_with": name_starts_with,
            "include": include,
            "results_per_page": results_per_page,
        })
        size = self.page_size or results_per_page or 5000
        matching = [
            FakeBlob(name=name, metadata=blob.metadata)
            for name, blob in sorted(self.blobs.items())
            if name.startswith(name_starts_with or "")
        ]
        pages = [matching[i:i + size] for i in range(0, len(matching), size)] or [[]]
        return _FakeItemPaged(pages)


class FakeServiceClient:
    """Service client handing out one FakeContainerClient per name."""

    def __init__(self, account_url: str, credential: Any = None, **kwargs: Any) -> None:
        self.url = account_url
        self.credential = credential
        self.kwargs = kwargs
        self.containers: dict[str, FakeContainerClient] = {}
        self.delegation_requests: list[tuple[Any, Any]] = []
        self.delegation_key: Any = None
        self.delegation_error: Exception | None = None
        self.closed = False

    def get_container_client(self, name: str) -> FakeContainerClient:
        return self.containers.setdefault(name, FakeContainerClient(name))

    async def get_user_delegation_key(self, key_start_time: Any, key_expiry_time: Any) -> Any:
        self.delegation_requests.append((key_start_time, key_expiry_time))
        if self.delegation_error is not None:
            raise self.delegation_error
        return self.delegation_key

    async def close(self) -> None:
        self.closed = True


class FakeServiceFactory:
    """Records the service client the plugin builds."""

    def __init__(self) -> None:
        self.service: FakeServiceClient | None = None

    def __call__(self, account_url: str, credential: Any = None, **kwargs: Any) -> FakeServiceClient:
        self.service = FakeServiceClient(account_url, credential=credential, **kwargs)
        return self.service


@dataclass
class RecordingLogger:
    """PluginLogger that keeps every message."""

    messages: list[tuple[str, str]] = field(default_factory=list)

    def info(self, msg: str) -> None:
        self.messages.append(("info", msg))

    def warn(self, msg: str) -> None:
        self.messages.append(("warn", msg))

    def error(self, msg: str) -> None:
        self.messages.append(("error", msg))

    def verbose(self, msg: str) -> None:
        self.messages.append(("verbose", msg))

    def of(self, level: str) -> list[str]:
        return [msg for lvl, msg in self.messages if lvl == level]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def report_dir(tmp_path: Path) -> Path:
    """A reg-suit style working directory with an entry page and snapshots."""
    base = tmp_path / ".reg"
    (base / "actual").mkdir(parents=True)
    (base / "expected").mkdir()
    (base / "diff").mkdir()
    (base / "index.html").write_text(
        "<!DOCTYPE html>\n<html>\n<head><title>Report</title></head>\n"
        "<body>\n<div id=\"app\"></div>\n</body>\n</html>\n"
    )
    (base / "out.json").write_text('{"failedItems": []}')
    (base / "actual" / "sample.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 16)
    (base / "notes.txt").write_text("not published by default")
    return base


@pytest.fixture
def shared_key_config() -> PublishConfig:
    return PublishConfig(
        url=ACCOUNT_URL,
        container_name="reports",
        credential_mode="shared-key",
        account_name="acct",
        account_key=ACCOUNT_KEY,
        sas_expiry_hour=24,
    )


@pytest.fixture
def collector() -> PublishCollector:
    return PublishCollector(EventLog())


def make_plugin(
    config: PublishConfig,
    base: Path,
    *,
    no_emit: bool = False,
    collector: PublishCollector | None = None,
) -> tuple[AbsPublisherPlugin, FakeServiceFactory, RecordingLogger]:
    """Create and init a plugin wired to fake storage."""
    factory = FakeServiceFactory()
    logger = RecordingLogger()
    plugin = AbsPublisherPlugin(service_factory=factory)
    plugin.init(PluginCreateOptions(
        logger=logger,
        no_emit=no_emit,
        working_dirs=WorkingDirs.under(base),
        options=config,
        collector=collector,
    ))
    return plugin, factory, logger

"""Blob container adapter — upload, list and download against one container.

Wraps ``azure.storage.blob.aio.ContainerClient`` behind the three
operations the publisher lifecycle needs.  Nothing here retries: the SDK
pipeline's own retry policy (tunable via ``PublishConfig.options``) is the
only one, and any error it gives up on propagates unchanged.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from azure.storage.blob import BlobType, ContentSettings

if TYPE_CHECKING:
    from azure.storage.blob.aio import ContainerClient

    from abspublish._types import ContinuationToken, RemoteKey
    from abspublish.observability.collector import PublishCollector

PAGE_SIZE = 1000

# Hierarchical-namespace accounts list directories as zero-length blobs
# flagged with this metadata entry.
_FOLDER_METADATA = "hdi_isfolder"


@dataclass(frozen=True, slots=True)
class ListPage:
    """One page of a prefix listing.

    Attributes:
        entries: Names of the real objects on this page.
        next_token: Cursor for the following page (None on the last page).
        is_last_page: True exactly when the service returned no cursor.
        skipped: Number of directory placeholders filtered out.

    """

    entries: tuple[RemoteKey, ...]
    next_token: ContinuationToken | None
    is_last_page: bool
    skipped: int = 0


def is_directory_placeholder(blob: Any) -> bool:
    """True for listing entries that stand for a directory, not an object."""
    metadata = blob.get("metadata") or {}
    if str(metadata.get(_FOLDER_METADATA, "")).lower() == "true":
        return True
    resource_type = blob.get("resource_type")
    return resource_type is not None and resource_type != "file"


class BlobContainer:
    """Upload/list/download adapter for a single container.

    Args:
        client: Async container client.
        collector: Optional event collector for transfer and listing events.

    """

    __slots__ = ("_client", "_collector")

    def __init__(
        self,
        client: ContainerClient,
        collector: PublishCollector | None = None,
    ) -> None:
        self._client = client
        self._collector = collector

    @property
    def name(self) -> str:
        return self._client.container_name

    async def upload(
        self,
        key: RemoteKey,
        data: bytes,
        content_type: str,
        *,
        local_path: str = "",
    ) -> None:
        """Upload ``data`` as a block blob in one shot, replacing any existing object."""
        t0 = time.perf_counter()
        await self._client.upload_blob(
            key,
            data,
            blob_type=BlobType.BLOCKBLOB,
            length=len(data),
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type),
        )
        if self._collector is not None:
            self._collector.record_transfer(
                "upload",
                key,
                local_path=local_path,
                content_type=content_type,
                size_bytes=len(data),
                duration_ms=(time.perf_counter() - t0) * 1000,
            )

    async def list_page(
        self,
        continuation_token: ContinuationToken | None,
        prefix: str,
    ) -> ListPage:
        """Fetch one page of up to ``PAGE_SIZE`` entries under ``prefix``."""
        t0 = time.perf_counter()
        pages = self._client.list_blobs(
            name_starts_with=prefix,
            include=["metadata"],
            results_per_page=PAGE_SIZE,
        ).by_page(continuation_token=continuation_token or None)

        entries: list[RemoteKey] = []
        skipped = 0
        async for page in pages:
            async for blob in page:
                if is_directory_placeholder(blob):
                    skipped += 1
                    continue
                entries.append(blob.name)
            break

        next_token = pages.continuation_token or None
        result = ListPage(
            entries=tuple(entries),
            next_token=next_token,
            is_last_page=next_token is None,
            skipped=skipped,
        )
        if self._collector is not None:
            self._collector.record_listing(
                prefix,
                entries=len(result.entries),
                skipped=skipped,
                is_last_page=result.is_last_page,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )
        return result

    async def download(self, key: RemoteKey) -> bytes:
        """Fetch the full body of the object at ``key``."""
        t0 = time.perf_counter()
        downloader = await self._client.download_blob(key)
        data = await downloader.readall()
        if self._collector is not None:
            self._collector.record_transfer(
                "download",
                key,
                size_bytes=len(data),
                duration_ms=(time.perf_counter() - t0) * 1000,
            )
        return data

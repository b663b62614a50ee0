"""Generic publisher lifecycle — enumerate, upload, list and download.

``AbstractPublisher`` drives publish and fetch runs; storage backends
implement the hooks (``upload_item``, ``download_item``, ``list_items``)
and the getters describing where files live locally and remotely.

Layout conventions (reg-suit working directory)::

    .reg/                  base — everything under it is published
    .reg/actual/           actual_dir — fetched back on the next run
    .reg/expected/         expected_dir — where fetched files land
    .reg/index.html        the report's entry page

"""

from __future__ import annotations

import asyncio
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from abspublish.content_type import guess_from_path
from abspublish.console import magenta

if TYPE_CHECKING:
    from abspublish._types import ContinuationToken, RelativePath, RemoteKey
    from abspublish.console import PluginLogger
    from abspublish.observability.collector import PublishCollector
    from abspublish.storage.blob import ListPage

DEFAULT_GLOB_PATTERN = "**/*.{html,js,wasm,png,json,jpeg,jpg,tiff,bmp,gif,css,svg}"
ENTRY_PAGE = "index.html"

# Uploads/downloads in flight at once.
_MAX_CONCURRENCY = 20

_BRACES = re.compile(r"\{([^{}]*)\}")


@dataclass(frozen=True, slots=True)
class WorkingDirs:
    """Local directories of a report run.

    Attributes:
        base: Root of everything that gets published.
        actual_dir: Snapshot produced by the current run.
        expected_dir: Destination of the snapshot fetched from storage.
        diff_dir: Difference images.

    """

    base: Path
    actual_dir: Path
    expected_dir: Path
    diff_dir: Path

    @classmethod
    def under(cls, base: Path) -> WorkingDirs:
        """Standard layout rooted at ``base``."""
        return cls(
            base=base,
            actual_dir=base / "actual",
            expected_dir=base / "expected",
            diff_dir=base / "diff",
        )


@dataclass(frozen=True, slots=True)
class FileItem:
    """A local file taking part in a publish or fetch.

    Attributes:
        path: POSIX path relative to the published root.
        abs_path: Absolute local path.
        mime_type: Content type implied by the extension (None if unknown).

    """

    path: RelativePath
    abs_path: Path
    mime_type: str | None


@dataclass(frozen=True, slots=True)
class RemoteFileItem:
    """An object found in storage during a fetch.

    Attributes:
        remote_path: Full object key.
        path: Key relative to the fetched prefix.

    """

    remote_path: RemoteKey
    path: RelativePath


@dataclass(frozen=True, slots=True)
class PublishOutcome:
    """Result of :meth:`AbstractPublisher.publish_internal`.

    Attributes:
        index_file: The report's entry page, if one was found.
        items: Every file that was (or, with ``no_emit``, would be) uploaded.

    """

    index_file: FileItem | None
    items: tuple[FileItem, ...]


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives into separate glob patterns.

    ``"**/*.{png,jpg}"`` becomes ``["**/*.png", "**/*.jpg"]``.  Groups are
    expanded left to right; nested groups are not supported.
    """
    match = _BRACES.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end():]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option + tail))
    return expanded


class AbstractPublisher(ABC):
    """Publish/fetch orchestration shared by storage backends."""

    no_emit: bool = False
    logger: PluginLogger
    collector: PublishCollector | None = None

    # ----- Hooks -----

    @abstractmethod
    def get_bucket_name(self) -> str: ...

    @abstractmethod
    def get_bucket_root_dir(self) -> str | None: ...

    @abstractmethod
    def get_local_glob_pattern(self) -> str | None: ...

    @abstractmethod
    def get_working_dirs(self) -> WorkingDirs: ...

    @abstractmethod
    async def upload_item(self, key: RemoteKey, item: FileItem) -> FileItem: ...

    @abstractmethod
    async def download_item(self, remote_item: RemoteFileItem, item: FileItem) -> FileItem: ...

    @abstractmethod
    async def list_items(self, last_key: ContinuationToken | None, prefix: str) -> ListPage: ...

    # ----- Lifecycle -----

    def resolve_in_bucket(self, key: str) -> RemoteKey:
        """Prefix ``key`` with the configured remote root, if any."""
        root = self.get_bucket_root_dir()
        if root:
            return f"{root.strip('/')}/{key}"
        return key

    def create_list(self) -> list[FileItem]:
        """Enumerate the local files matching the glob pattern, sorted by path."""
        base = self.get_working_dirs().base
        pattern = self.get_local_glob_pattern() or DEFAULT_GLOB_PATTERN
        found: dict[str, Path] = {}
        for expanded in expand_braces(pattern):
            for match in base.glob(expanded):
                if match.is_file():
                    found[match.relative_to(base).as_posix()] = match.resolve()
        return [
            FileItem(path=rel, abs_path=abs_path, mime_type=guess_from_path(rel))
            for rel, abs_path in sorted(found.items())
        ]

    async def publish_internal(self, key: str) -> PublishOutcome:
        """Upload every local report file under ``key``."""
        items = self.create_list()
        index_file = _find_entry_page(items)
        if self.no_emit:
            return PublishOutcome(index_file=index_file, items=tuple(items))

        self.logger.info(
            f"Upload {len(items)} files to {magenta(self.get_bucket_name())}."
        )
        remote_key = self.resolve_in_bucket(key)
        uploaded = await self._run_bounded(
            [self.upload_item(remote_key, item) for item in items],
        )
        return PublishOutcome(index_file=index_file, items=tuple(uploaded))

    async def fetch_internal(self, key: str) -> list[FileItem]:
        """Download the ``actual`` snapshot stored under ``key`` into ``expected``."""
        if self.no_emit:
            return []
        dirs = self.get_working_dirs()
        prefix = f"{self.resolve_in_bucket(key)}/{dirs.actual_dir.name}"
        remote_keys = await self._list_all(prefix)

        pairs: list[tuple[RemoteFileItem, FileItem]] = []
        for remote_path in remote_keys:
            relative = remote_path.removeprefix(prefix + "/")
            remote_item = RemoteFileItem(remote_path=remote_path, path=relative)
            local = FileItem(
                path=relative,
                abs_path=dirs.expected_dir / PurePosixPath(relative),
                mime_type=guess_from_path(relative),
            )
            pairs.append((remote_item, local))

        self.logger.info(
            f"Download {len(pairs)} files from {magenta(self.get_bucket_name())}."
        )
        return await self._run_bounded(
            [self.download_item(remote, local) for remote, local in pairs],
        )

    async def _list_all(self, prefix: str) -> list[RemoteKey]:
        """Consume the listing page by page."""
        keys: list[RemoteKey] = []
        token: ContinuationToken | None = None
        while True:
            page = await self.list_items(token, prefix)
            keys.extend(page.entries)
            if page.is_last_page:
                return keys
            token = page.next_token

    async def _run_bounded(self, jobs: list) -> list[FileItem]:
        semaphore = asyncio.Semaphore(_MAX_CONCURRENCY)

        async def _run(job):  # noqa: ANN001, ANN202
            async with semaphore:
                return await job

        return list(await asyncio.gather(*(_run(job) for job in jobs)))


def _find_entry_page(items: list[FileItem]) -> FileItem | None:
    """Pick the top-most ``index.html``."""
    candidates = [item for item in items if PurePosixPath(item.path).name == ENTRY_PAGE]
    if not candidates:
        return None
    return min(candidates, key=lambda item: (item.path.count("/"), item.path))

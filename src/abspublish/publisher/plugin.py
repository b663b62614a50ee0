"""Azure Blob Storage publisher plugin.

Publishes a report directory to a blob container.  When a token lifetime
is configured, it also:

1. mints a read-only SAS token for the container,
2. inlines the bootstrap script into the entry page and uploads it again,
3. uploads the cache-worker helper next to it,
4. appends the token to the reported URL.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any

from azure.core.credentials import AzureNamedKeyCredential
from azure.identity.aio import DefaultAzureCredential
from azure.storage.blob.aio import BlobServiceClient

from abspublish._errors import PublishError
from abspublish.content_type import detect_content_type
from abspublish.publisher.base import AbstractPublisher, FileItem, RemoteFileItem, WorkingDirs
from abspublish.sas.bootstrap import WORKER_SCRIPT, bootstrap_source, worker_source
from abspublish.sas.issuer import AccessToken, Signer, create_signer, issue_token
from abspublish.sas.patcher import is_patched, patch_entry_page, script_block
from abspublish.storage.blob import BlobContainer

if TYPE_CHECKING:
    from abspublish._types import ContinuationToken, RemoteKey
    from abspublish.config import PublishConfig
    from abspublish.console import PluginLogger
    from abspublish.observability.collector import PublishCollector
    from abspublish.storage.blob import ListPage

    type ServiceFactory = Callable[..., BlobServiceClient]


@dataclass(frozen=True, slots=True)
class PluginCreateOptions:
    """What the host hands the plugin at init.

    Attributes:
        logger: Host logger.
        no_emit: Skip all remote writes and downloads (dry run).
        working_dirs: Local report directories.
        options: Plugin configuration.
        collector: Optional event collector.

    """

    logger: PluginLogger
    no_emit: bool
    working_dirs: WorkingDirs
    options: PublishConfig
    collector: PublishCollector | None = None


@dataclass(frozen=True, slots=True)
class PublishResult:
    """Outcome of :meth:`AbsPublisherPlugin.publish`.

    Attributes:
        report_url: Browsable URL of the entry page (token attached when
            signing is enabled), or None if the report has no entry page.
        token: The issued token, if any.
        uploaded: Number of files uploaded by the generic lifecycle.

    """

    report_url: str | None
    token: AccessToken | None = None
    uploaded: int = 0


class AbsPublisherPlugin(AbstractPublisher):
    """Publisher plugin backed by an Azure Blob Storage container.

    Args:
        service_factory: Builds the service client from
            ``(account_url, credential=..., **options)``.  Defaults to the
            SDK's async ``BlobServiceClient``.

    """

    name = "reg-publish-azure-blob-storage-plugin"

    def __init__(self, service_factory: ServiceFactory | None = None) -> None:
        self._service_factory = service_factory or BlobServiceClient
        self._options: PluginCreateOptions | None = None
        self._credential: Any = None
        self._service: BlobServiceClient | None = None
        self._container: BlobContainer | None = None
        self._signer: Signer | None = None

    # ----- Host contract -----

    def init(self, options: PluginCreateOptions) -> None:
        """Build the credential, service client, container client and signer."""
        self.no_emit = options.no_emit
        self.logger = options.logger
        self.collector = options.collector
        self._options = options
        config = options.options

        self._credential = (
            DefaultAzureCredential() if config.use_default_credential
            else self._create_shared_key_credential()
        )
        self._service = self._service_factory(
            config.url, credential=self._credential, **config.options,
        )
        self._container = BlobContainer(
            self._service.get_container_client(self.get_bucket_name()),
            collector=self.collector,
        )
        self._signer = create_signer(config, self._service)

    async def fetch(self, key: str) -> list[FileItem]:
        """Download the snapshot published under ``key``."""
        return await self.fetch_internal(key)

    async def publish(self, key: str) -> PublishResult:
        """Upload the report under ``key`` and return its browsable URL."""
        config = self._require_config()
        outcome = await self.publish_internal(key)
        index_file = outcome.index_file

        token = await self.issue_token()
        if token is not None:
            self.logger.verbose(f"Issued SAS token {token.redacted()}")
            if self.collector is not None:
                self.collector.record_token(token, container=config.container_name)
            if index_file is not None and not self.no_emit:
                await self._add_auth_script(index_file, key, token)
        elif config.signing_enabled:
            self.logger.warn("sas_expiry_hour is set but account_name is missing; report URL is unsigned.")

        report_url = None
        if index_file is not None:
            report_url = (
                f"{config.url}/{config.container_name}/"
                f"{self.resolve_in_bucket(key)}/{index_file.path}"
                f"{'?' + token.query if token is not None else ''}"
            )
        return PublishResult(
            report_url=report_url,
            token=token,
            uploaded=0 if self.no_emit else len(outcome.items),
        )

    async def issue_token(self) -> AccessToken | None:
        """Mint a report token with the signer resolved at init."""
        return await issue_token(self._require_config(), self._require_signer())

    async def close(self) -> None:
        """Close the service client and, for delegated mode, the credential."""
        if self._service is not None:
            await self._service.close()
        if isinstance(self._credential, DefaultAzureCredential):
            await self._credential.close()

    async def __aenter__(self) -> AbsPublisherPlugin:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ----- Signed access -----

    async def _add_auth_script(self, index_file: FileItem, key: str, token: AccessToken) -> None:
        """Re-upload the entry page with the bootstrap script, plus the worker helper."""
        container = self._require_container()
        remote_root = self.resolve_in_bucket(key)
        html = await asyncio.to_thread(index_file.abs_path.read_bytes)
        page_key = str(PurePosixPath(remote_root, index_file.path))
        # The bootstrap registers the worker relative to the entry page.
        worker_key = str(PurePosixPath(page_key).parent / WORKER_SCRIPT)

        if is_patched(html):
            self.logger.warn(f"{index_file.path} already carries the bootstrap script; not patching again.")
            patched = html
        else:
            source = bootstrap_source(token.names)
            patched = patch_entry_page(html, source)
            if self.collector is not None:
                self.collector.record_patch(page_key, inserted_bytes=len(script_block(source)))
            self.logger.verbose(f"Patched {index_file.path} with the SAS bootstrap script")

        await container.upload(
            page_key, patched, "text/html", local_path=str(index_file.abs_path),
        )
        worker = worker_source(token.names).encode("utf-8")
        await container.upload(worker_key, worker, "text/javascript")
        self.logger.verbose(f"Uploaded from {index_file.abs_path} to {page_key}")

    def _create_shared_key_credential(self) -> AzureNamedKeyCredential | None:
        config = self._require_config()
        if not config.has_shared_key:
            return None
        return AzureNamedKeyCredential(config.account_name, config.account_key)

    # ----- Storage hooks -----

    async def upload_item(self, key: RemoteKey, item: FileItem) -> FileItem:
        data = await asyncio.to_thread(item.abs_path.read_bytes)
        content_type = detect_content_type(data, item.path)
        await self._require_container().upload(
            f"{key}/{item.path}", data, content_type, local_path=str(item.abs_path),
        )
        self.logger.verbose(f"Uploaded from {item.abs_path} to {key}/{item.path}")
        return item

    async def download_item(self, remote_item: RemoteFileItem, item: FileItem) -> FileItem:
        t0 = time.perf_counter()
        data = await self._require_container().download(remote_item.remote_path)
        await asyncio.to_thread(_write_file, item, data)
        self.logger.verbose(
            f"Downloaded from {remote_item.remote_path} to {item.abs_path} "
            f"({(time.perf_counter() - t0) * 1000:.0f}ms)"
        )
        return item

    async def list_items(self, last_key: ContinuationToken | None, prefix: str) -> ListPage:
        return await self._require_container().list_page(last_key, prefix)

    def get_working_dirs(self) -> WorkingDirs:
        return self._require_options().working_dirs

    def get_local_glob_pattern(self) -> str | None:
        return self._require_config().pattern

    def get_bucket_name(self) -> str:
        return self._require_config().container_name

    def get_bucket_root_dir(self) -> str | None:
        return self._require_config().path_prefix

    # ----- Internals -----

    def _require_options(self) -> PluginCreateOptions:
        if self._options is None:
            msg = "Plugin used before init()"
            raise PublishError(msg)
        return self._options

    def _require_config(self) -> PublishConfig:
        return self._require_options().options

    def _require_container(self) -> BlobContainer:
        self._require_options()
        assert self._container is not None
        return self._container

    def _require_signer(self) -> Signer:
        self._require_options()
        assert self._signer is not None
        return self._signer


def _write_file(item: FileItem, data: bytes) -> None:
    item.abs_path.parent.mkdir(parents=True, exist_ok=True)
    item.abs_path.write_bytes(data)

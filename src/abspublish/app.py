"""abspublish application — the synchronous entry points behind the CLI.

``publish``, ``fetch`` and ``sign`` load configuration, wire a plugin with
a console logger and run it to completion on a fresh event loop.
``inspect_url`` checks a report URL offline.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from abspublish.banner import print_summary
from abspublish.config_loader import load_config
from abspublish.console import ConsoleLogger
from abspublish.observability.collector import PublishCollector
from abspublish.publisher.base import WorkingDirs
from abspublish.publisher.plugin import AbsPublisherPlugin, PluginCreateOptions, PublishResult
from abspublish.sas.bootstrap import has_token, token_expiry

if TYPE_CHECKING:
    from abspublish.console import PluginLogger
    from abspublish.publisher.base import FileItem
    from abspublish.sas.issuer import AccessToken


@dataclass(frozen=True, slots=True)
class UrlReport:
    """What ``inspect_url`` found in a report URL.

    Attributes:
        url: The inspected URL.
        signed: True if all token parameters are present.
        expires_on: Parsed signed-expiry, if present.
        expired: True if ``expires_on`` lies in the past.

    """

    url: str
    signed: bool
    expires_on: datetime | None
    expired: bool


def _create_plugin(
    root: str | Path,
    *,
    working_dir: str,
    config_file: str | Path | None,
    no_emit: bool,
    logger: PluginLogger,
    collector: PublishCollector | None,
    overrides: dict[str, object],
) -> AbsPublisherPlugin:
    root_path = Path(root).resolve()
    config = load_config(root_path, config_file, **overrides)
    plugin = AbsPublisherPlugin()
    plugin.init(PluginCreateOptions(
        logger=logger,
        no_emit=no_emit,
        working_dirs=WorkingDirs.under(root_path / working_dir),
        options=config,
        collector=collector,
    ))
    return plugin


def publish(
    key: str,
    root: str | Path = ".",
    *,
    working_dir: str = ".reg",
    config_file: str | Path | None = None,
    no_emit: bool = False,
    verbose: bool = False,
    collector: PublishCollector | None = None,
    **overrides: object,
) -> PublishResult:
    """Publish the report under ``root/working_dir`` as ``key``.

    Args:
        key: Remote key (usually a commit hash or build id).
        root: Project root holding the config file and working directory.
        working_dir: Report directory, relative to root.
        config_file: Explicit config file, relative to root.
        no_emit: Enumerate and sign, but upload nothing.
        verbose: Print per-file log lines.
        collector: Event collector; a fresh one is used when omitted.
        **overrides: PublishConfig fields taking precedence over the file.

    """
    logger = ConsoleLogger(verbose=verbose)
    collector = collector if collector is not None else PublishCollector()
    plugin = _create_plugin(
        root, working_dir=working_dir, config_file=config_file, no_emit=no_emit,
        logger=logger, collector=collector, overrides=overrides,
    )
    start = time.perf_counter()

    async def _run() -> PublishResult:
        async with plugin:
            return await plugin.publish(key)

    result = asyncio.run(_run())
    print_summary(
        "publish",
        container=plugin.get_bucket_name(),
        key=plugin.resolve_in_bucket(key),
        files=result.uploaded,
        report_url=result.report_url,
        token=result.token,
        stats=collector.log.stats(),
        elapsed_ms=(time.perf_counter() - start) * 1000,
        warnings=None if result.report_url else ["No index.html found; nothing to link to."],
    )
    return result


def fetch(
    key: str,
    root: str | Path = ".",
    *,
    working_dir: str = ".reg",
    config_file: str | Path | None = None,
    no_emit: bool = False,
    verbose: bool = False,
    collector: PublishCollector | None = None,
    **overrides: object,
) -> list[FileItem]:
    """Download the snapshot published as ``key`` into the expected directory."""
    logger = ConsoleLogger(verbose=verbose)
    collector = collector if collector is not None else PublishCollector()
    plugin = _create_plugin(
        root, working_dir=working_dir, config_file=config_file, no_emit=no_emit,
        logger=logger, collector=collector, overrides=overrides,
    )
    start = time.perf_counter()

    async def _run() -> list[FileItem]:
        async with plugin:
            return await plugin.fetch(key)

    items = asyncio.run(_run())
    print_summary(
        "fetch",
        container=plugin.get_bucket_name(),
        key=plugin.resolve_in_bucket(key),
        files=len(items),
        stats=collector.log.stats(),
        elapsed_ms=(time.perf_counter() - start) * 1000,
    )
    return items


def sign(
    root: str | Path = ".",
    *,
    config_file: str | Path | None = None,
    verbose: bool = False,
    **overrides: object,
) -> AccessToken | None:
    """Mint a token with the configured credentials without uploading anything."""
    logger = ConsoleLogger(verbose=verbose)
    plugin = _create_plugin(
        root, working_dir=".reg", config_file=config_file, no_emit=True,
        logger=logger, collector=None, overrides=overrides,
    )

    async def _run() -> AccessToken | None:
        async with plugin:
            return await plugin.issue_token()

    token = asyncio.run(_run())
    print_summary("sign", container=plugin.get_bucket_name(), token=token)
    return token


def inspect_url(url: str, *, now: datetime | None = None) -> UrlReport:
    """Report whether ``url`` carries a complete token and when it expires."""
    search = urlsplit(url).query
    expires_on = token_expiry(search)
    current = now or datetime.now(UTC)
    return UrlReport(
        url=url,
        signed=has_token(search),
        expires_on=expires_on,
        expired=expires_on is not None and expires_on <= current,
    )

"""Publisher layer — generic publish/fetch lifecycle and the blob-storage plugin."""

from abspublish.publisher.base import (
    DEFAULT_GLOB_PATTERN,
    AbstractPublisher,
    FileItem,
    PublishOutcome,
    RemoteFileItem,
    WorkingDirs,
    expand_braces,
)
from abspublish.publisher.plugin import AbsPublisherPlugin, PluginCreateOptions, PublishResult

__all__ = [
    "DEFAULT_GLOB_PATTERN",
    "AbsPublisherPlugin",
    "AbstractPublisher",
    "FileItem",
    "PluginCreateOptions",
    "PublishOutcome",
    "PublishResult",
    "RemoteFileItem",
    "WorkingDirs",
    "expand_braces",
]

"""abspublish error hierarchy.

All abspublish-specific errors inherit from AbsPublishError for easy catching.
Storage SDK errors (``azure.core.exceptions``) are deliberately not wrapped.
"""


class AbsPublishError(Exception):
    """Base error for all abspublish operations."""


class ConfigError(AbsPublishError):
    """Invalid or missing configuration."""


class SigningError(AbsPublishError):
    """A SAS token could not be minted (missing key, rejected delegation)."""


class PatchError(AbsPublishError):
    """The entry page could not be patched with the bootstrap script."""


class PublishError(AbsPublishError):
    """Error in the publish/fetch lifecycle outside the storage service."""

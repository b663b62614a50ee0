"""abspublish configuration.

PublishConfig is the plugin's configuration object, validated once and
frozen after creation.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from abspublish._errors import ConfigError
from abspublish._types import CredentialMode

PLUGIN_NAME = "reg-publish-azure-blob-storage-plugin"

_CREDENTIAL_MODES = ("delegated", "shared-key")

# Token timestamps are written in whole seconds.
_MIN_LIFETIME_HOURS = 1 / 3600


@dataclass(frozen=True, slots=True)
class PublishConfig:
    """Configuration for publishing a report to a blob container.

    Attributes:
        url: Blob service endpoint, e.g. ``https://acct.blob.core.windows.net``.
            A trailing slash is stripped on construction.
        container_name: Target container.
        credential_mode: ``"delegated"`` signs in with ``DefaultAzureCredential``
            and mints SAS tokens from a user delegation key; ``"shared-key"``
            uses ``account_name``/``account_key``.
        account_name: Storage account name (required for signing).
        account_key: Base64 account key (shared-key mode only).
        sas_expiry_hour: Token lifetime in hours.  ``None`` disables signing.
        options: Keyword arguments forwarded to ``BlobServiceClient``
            (``retry_total``, ``max_single_put_size``, ...).
        pattern: Local glob selecting the files to upload.
        path_prefix: Remote directory all keys are published under.

    """

    url: str
    container_name: str
    credential_mode: CredentialMode = "shared-key"
    account_name: str | None = None
    account_key: str | None = None
    sas_expiry_hour: float | None = None
    options: dict[str, Any] = field(default_factory=dict)
    pattern: str | None = None
    path_prefix: str | None = None

    def __post_init__(self) -> None:
        if not self.url:
            msg = "url is required"
            raise ConfigError(msg)
        if not self.container_name:
            msg = "container_name is required"
            raise ConfigError(msg)
        if self.credential_mode not in _CREDENTIAL_MODES:
            msg = (
                f"credential_mode must be one of {_CREDENTIAL_MODES}, "
                f"got {self.credential_mode!r}"
            )
            raise ConfigError(msg)
        if self.sas_expiry_hour is not None:
            if isinstance(self.sas_expiry_hour, bool) or not isinstance(
                self.sas_expiry_hour, int | float,
            ):
                msg = f"sas_expiry_hour must be a number, got {self.sas_expiry_hour!r}"
                raise ConfigError(msg)
            if self.sas_expiry_hour <= 0:
                msg = f"sas_expiry_hour must be positive, got {self.sas_expiry_hour}"
                raise ConfigError(msg)
            if not self.sas_expiry_hour >= _MIN_LIFETIME_HOURS:
                msg = f"sas_expiry_hour must be at least one second (1/3600), got {self.sas_expiry_hour}"
                raise ConfigError(msg)
            try:
                datetime.now(UTC) + timedelta(hours=self.sas_expiry_hour)
            except OverflowError as exc:
                msg = f"sas_expiry_hour is too large, got {self.sas_expiry_hour}"
                raise ConfigError(msg) from exc
        if not isinstance(self.options, dict):
            msg = f"options must be a mapping, got {type(self.options).__name__}"
            raise ConfigError(msg)
        object.__setattr__(self, "url", self.url.rstrip("/"))
        if self.path_prefix is not None:
            object.__setattr__(self, "path_prefix", self.path_prefix.strip("/") or None)

    @property
    def use_default_credential(self) -> bool:
        """True when the plugin signs in with a managed/delegated identity."""
        return self.credential_mode == "delegated"

    @property
    def has_shared_key(self) -> bool:
        """True when both halves of the shared-key pair are configured."""
        return bool(self.account_name) and bool(self.account_key)

    @property
    def signing_enabled(self) -> bool:
        """True when a SAS token should be attached to the report URL."""
        return self.sas_expiry_hour is not None

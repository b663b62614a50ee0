"""Token issuer — mint read-only, time-boxed SAS tokens for a container.

Signing is opt-in: without a lifetime, an account name or a container name
``issue_token`` returns ``None`` and the report URL stays bare.

The credential mode is resolved once, at plugin init, into a signer:

- ``SharedKeySigner`` signs an account SAS with the configured key.
- ``DelegatedSigner`` first exchanges the validity window for a user
  delegation key, then signs a container SAS with it.

Both produce an :class:`AccessToken` whose parameters are reordered into a
stable canonical order (``sv ss srt spr st se sp sig``).  The signature does
not depend on the order of the query string, only on the signed values.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Protocol
from urllib.parse import parse_qsl, quote

from azure.core.exceptions import AzureError
from azure.storage.blob import (
    AccountSasPermissions,
    ContainerSasPermissions,
    ResourceTypes,
    Services,
    generate_account_sas,
    generate_container_sas,
)

from abspublish._errors import SigningError

if TYPE_CHECKING:
    from azure.storage.blob.aio import BlobServiceClient

    from abspublish._types import CredentialMode
    from abspublish.config import PublishConfig

# The eight parameters every report token carries, in canonical order.
TOKEN_PARAMS: tuple[str, ...] = ("sv", "ss", "srt", "spr", "st", "se", "sp", "sig")

_SIGNATURE = "sig"
_PROTOCOL = "https"


@dataclass(frozen=True, slots=True)
class SigningWindow:
    """Validity window of a token, UTC with whole-second precision.

    Attributes:
        starts_on: First instant the token is accepted.
        expires_on: Instant after which the service rejects the token.

    """

    starts_on: datetime
    expires_on: datetime

    @classmethod
    def starting(cls, now: datetime | None, hours: float) -> SigningWindow:
        """Build a window of ``hours`` beginning at ``now`` (default: current time)."""
        start = (now or datetime.now(UTC)).astimezone(UTC).replace(microsecond=0)
        return cls(starts_on=start, expires_on=start + timedelta(hours=hours))

    @property
    def lifetime(self) -> timedelta:
        return self.expires_on - self.starts_on


@dataclass(frozen=True, slots=True)
class AccessToken:
    """A signed query string granting read access until ``expires_on``.

    Attributes:
        params: Ordered ``(name, value)`` pairs, values unencoded.
        starts_on: Start of the validity window.
        expires_on: End of the validity window.
        mode: Credential path that produced the signature.

    """

    params: tuple[tuple[str, str], ...]
    starts_on: datetime
    expires_on: datetime
    mode: CredentialMode

    @classmethod
    def from_query(
        cls,
        raw: str,
        *,
        window: SigningWindow,
        mode: CredentialMode,
    ) -> AccessToken:
        """Parse an SDK-generated SAS query and put it in canonical order."""
        pairs = parse_qsl(raw.lstrip("?"), keep_blank_values=True)
        values = dict(pairs)
        ordered = [(name, values[name]) for name in TOKEN_PARAMS[:-1] if name in values]
        extras = [(k, v) for k, v in pairs if k not in TOKEN_PARAMS]
        if _SIGNATURE not in values:
            msg = "Signed query string has no signature"
            raise SigningError(msg)
        return cls(
            params=(*ordered, *extras, (_SIGNATURE, values[_SIGNATURE])),
            starts_on=window.starts_on,
            expires_on=window.expires_on,
            mode=mode,
        )

    @property
    def names(self) -> tuple[str, ...]:
        """Parameter names in query order."""
        return tuple(name for name, _ in self.params)

    @property
    def query(self) -> str:
        """The URL query fragment, without a leading ``?``."""
        return "&".join(f"{name}={quote(value, safe='')}" for name, value in self.params)

    def redacted(self) -> str:
        """The query with the signature masked, for log output."""
        return "&".join(
            f"{name}={'***' if name == _SIGNATURE else quote(value, safe='')}"
            for name, value in self.params
        )

    def __str__(self) -> str:
        return self.query


class Signer(Protocol):
    """Signs a validity window into a token for one container."""

    @property
    def mode(self) -> CredentialMode: ...

    async def sign(self, window: SigningWindow, container_name: str) -> AccessToken: ...


class SharedKeySigner:
    """Signs account SAS tokens directly with the account key.

    A missing key is only reported when signing is attempted, so the plugin
    can still run anonymously against public containers.
    """

    __slots__ = ("_account_key", "_account_name")

    mode: CredentialMode = "shared-key"

    def __init__(self, account_name: str, account_key: str | None) -> None:
        self._account_name = account_name
        self._account_key = account_key

    async def sign(self, window: SigningWindow, container_name: str) -> AccessToken:
        if not self._account_key:
            msg = (
                f"Cannot sign for account {self._account_name!r}: "
                "shared-key mode requires account_key"
            )
            raise SigningError(msg)
        try:
            raw = generate_account_sas(
                self._account_name,
                self._account_key,
                resource_types=ResourceTypes(container=True, object=True),
                permission=AccountSasPermissions(read=True),
                expiry=window.expires_on,
                start=window.starts_on,
                services=Services(blob=True),
                protocol=_PROTOCOL,
            )
        except (ValueError, TypeError) as exc:
            msg = f"Invalid shared key for account {self._account_name!r}: {exc}"
            raise SigningError(msg) from exc
        return AccessToken.from_query(raw, window=window, mode=self.mode)


class DelegatedSigner:
    """Signs container SAS tokens with a user delegation key.

    The key is requested from the service for exactly the token's window,
    so a token never outlives the key that signed it.
    """

    __slots__ = ("_account_name", "_service")

    mode: CredentialMode = "delegated"

    def __init__(self, account_name: str, service: BlobServiceClient) -> None:
        self._account_name = account_name
        self._service = service

    async def sign(self, window: SigningWindow, container_name: str) -> AccessToken:
        try:
            delegation_key = await self._service.get_user_delegation_key(
                key_start_time=window.starts_on,
                key_expiry_time=window.expires_on,
            )
        except AzureError as exc:
            msg = f"User delegation key request was rejected: {exc}"
            raise SigningError(msg) from exc
        raw = generate_container_sas(
            self._account_name,
            container_name,
            user_delegation_key=delegation_key,
            permission=ContainerSasPermissions(read=True),
            expiry=window.expires_on,
            start=window.starts_on,
            protocol=_PROTOCOL,
        )
        return AccessToken.from_query(raw, window=window, mode=self.mode)


def create_signer(config: PublishConfig, service: BlobServiceClient) -> Signer:
    """Resolve the configured credential mode into a signer."""
    account_name = config.account_name or ""
    if config.use_default_credential:
        return DelegatedSigner(account_name, service)
    return SharedKeySigner(account_name, config.account_key)


async def issue_token(
    config: PublishConfig,
    signer: Signer,
    *,
    now: datetime | None = None,
) -> AccessToken | None:
    """Mint a report token, or return ``None`` when signing is not configured.

    Args:
        config: Plugin configuration (lifetime, account, container).
        signer: Signer resolved at init from the credential mode.
        now: Start of the validity window (default: current UTC time).

    Raises:
        SigningError: Signing was requested but the credential path failed.

    """
    if (
        config.sas_expiry_hour is None
        or not config.account_name
        or not config.container_name
    ):
        return None
    window = SigningWindow.starting(now, config.sas_expiry_hour)
    return await signer.sign(window, config.container_name)

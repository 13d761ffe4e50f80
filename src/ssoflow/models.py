"""Canonical Pydantic models shared across all ssoflow modules.

The models fall into three groups:

**Configuration** -- :class:`SsoConfig`, the four logical parameters of a
flow.  It is frozen so that its :meth:`~SsoConfig.fingerprint` stays stable
for the lifetime of a flow.

**Cacheable artifacts** -- :class:`ClientRegistration`, :class:`BearerToken`,
and :class:`SessionCredentials`.  Each exposes an ``expires_at`` UTC
timestamp (see :class:`Expiring`) and round-trips through JSON with RFC 3339
timestamps, which is the on-disk format of :class:`~ssoflow.cache.ExpiryCache`.
Field names are part of the cache format; renaming one invalidates existing
caches.

**Ephemeral** -- :class:`VerificationChallenge`, produced by
``StartDeviceAuthorization`` and discarded once polling ends.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from typing import Annotated, Any, Protocol

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Expiring(Protocol):
    """Anything the cache can store: it only needs to know when it expires."""

    @property
    def expires_at(self) -> datetime: ...


# --- Configuration ---


class SsoConfig(BaseModel):
    """AWS SSO configuration for a single flow.

    Example::

        SsoConfig(
            region="eu-west-1",
            start_url="https://myorg.awsapps.com/start",
            account_id="012345678910",
            role_name="PowerUser",
        )
    """

    model_config = ConfigDict(frozen=True)

    region: str = Field(min_length=1, description="Region in which SSO was set up")
    start_url: str = Field(min_length=1, description="URL of the SSO user portal")
    account_id: str = Field(min_length=1, description="Account to sign in to")
    role_name: str = Field(
        min_length=1, description="Role name as it appears in SSO configuration"
    )

    def fingerprint(self) -> str:
        """Return a deterministic 16-character hex digest of the field values.

        Used as the cache-file suffix.  This is a cache key, not a security
        boundary; only determinism matters.
        """
        raw = json.dumps([self.region, self.start_url, self.account_id, self.role_name])
        return hashlib.sha256(raw.encode()).hexdigest()[:16]

    async def load(self) -> SsoConfig:
        """Static configuration source: return this configuration unchanged."""
        return self


# --- Cacheable artifacts ---


class ClientRegistration(BaseModel):
    """An OIDC client registered via ``RegisterClient``."""

    client_id: str
    client_secret: str = Field(repr=False)
    client_secret_expires_at: UtcDatetime

    @property
    def expires_at(self) -> datetime:
        return self.client_secret_expires_at


class BearerToken(BaseModel):
    """An SSO OIDC access token obtained through the device flow."""

    access_token: str = Field(repr=False)
    expires_at: UtcDatetime


class SessionCredentials(BaseModel):
    """Short-lived AWS session credentials, the end product of the flow.

    The secret access key and session token are excluded from ``repr()`` and
    ``str()``; only the access key id and expiry are ever surfaced in
    diagnostics.
    """

    access_key_id: str
    secret_access_key: str = Field(repr=False)
    session_token: str = Field(repr=False)
    expires_at: UtcDatetime

    def to_credential_process(self) -> dict[str, Any]:
        """Render the document expected from an AWS ``credential_process``."""
        return {
            "Version": 1,
            "AccessKeyId": self.access_key_id,
            "SecretAccessKey": self.secret_access_key,
            "SessionToken": self.session_token,
            "Expiration": self.expires_at.isoformat().replace("+00:00", "Z"),
        }

    def to_env(self) -> dict[str, str]:
        """Render the standard ``AWS_*`` environment variables."""
        return {
            "AWS_ACCESS_KEY_ID": self.access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.secret_access_key,
            "AWS_SESSION_TOKEN": self.session_token,
            "AWS_CREDENTIAL_EXPIRATION": self.expires_at.isoformat().replace("+00:00", "Z"),
        }


# --- Ephemeral ---


class VerificationChallenge(BaseModel):
    """A device authorization in progress.

    ``expires_at`` is the lifetime of the challenge itself, not of the token
    it eventually yields.
    """

    device_code: str = Field(repr=False)
    user_code: str
    verification_url: str = Field(
        description="Verification URI with the user code embedded"
    )
    poll_interval: float = Field(gt=0, description="Seconds to wait between polls")
    expires_at: UtcDatetime

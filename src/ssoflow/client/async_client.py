"""Asynchronous HTTP adapter for the AWS SSO OIDC and SSO portal APIs.

:class:`HttpSsoClient` implements :class:`~ssoflow.client.base.SsoRemote`
on top of :class:`httpx.AsyncClient`.  All four calls are unsigned JSON
requests; the bearer token travels in the ``x-amz-sso_bearer_token`` header
for ``GetRoleCredentials``.

Endpoints (``{region}`` taken from :class:`~ssoflow.models.SsoConfig`)::

    POST https://oidc.{region}.amazonaws.com/client/register
    POST https://oidc.{region}.amazonaws.com/device_authorization
    POST https://oidc.{region}.amazonaws.com/token
    GET  https://portal.sso.{region}.amazonaws.com/federation/credentials

Error responses are classified from the JSON ``error`` field or the
``x-amzn-ErrorType`` header so that the device poller can recognise
``authorization_pending``, ``slow_down``, and ``expired_token``.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterator, Optional

import httpx
from pydantic import ValidationError

from ssoflow.client.base import (
    DEVICE_CODE_GRANT_TYPE,
    AuthorizationPendingError,
    ExpiredTokenError,
    InvalidResponseError,
    RemoteError,
    SlowDownError,
    SsoRemote,
)
from ssoflow.models import (
    BearerToken,
    ClientRegistration,
    SessionCredentials,
    VerificationChallenge,
    utc_now,
)

_ERROR_TYPES: dict[str, type[RemoteError]] = {
    "authorization_pending": AuthorizationPendingError,
    "AuthorizationPendingException": AuthorizationPendingError,
    "slow_down": SlowDownError,
    "SlowDownException": SlowDownError,
    "expired_token": ExpiredTokenError,
    "ExpiredTokenException": ExpiredTokenError,
}


def _require(payload: Any, field: str, operation: str) -> Any:
    """Return ``payload[field]`` or raise :class:`InvalidResponseError`."""
    if not isinstance(payload, dict) or payload.get(field) is None:
        raise InvalidResponseError(f"invalid {operation} response: missing {field}")
    return payload[field]


@contextmanager
def _parsing(operation: str) -> Iterator[None]:
    """Report values of the wrong type or range as :class:`InvalidResponseError`."""
    try:
        yield
    except (ValidationError, ValueError, TypeError, OverflowError, OSError) as exc:
        raise InvalidResponseError(f"invalid {operation} response: {exc}") from exc


def _error_code(response: httpx.Response, body: Any) -> str:
    if isinstance(body, dict):
        code = body.get("error") or body.get("__type")
        if code:
            return str(code).split("#")[-1]
    header = response.headers.get("x-amzn-ErrorType", "")
    return header.split(":")[0]


def _error_message(response: httpx.Response, body: Any) -> str:
    if isinstance(body, dict):
        for key in ("error_description", "message", "Message"):
            if body.get(key):
                return str(body[key])
    return response.text or response.reason_phrase


class HttpSsoClient(SsoRemote):
    """:class:`~ssoflow.client.base.SsoRemote` backed by :mod:`httpx`.

    Args:
        region: AWS region in which SSO is set up.
        http_client: Optional pre-built :class:`httpx.AsyncClient` (tests
            pass one with a :class:`httpx.MockTransport`).  When omitted a
            client is created and owned by this adapter.
        oidc_endpoint: Override for the SSO OIDC base URL.
        portal_endpoint: Override for the SSO portal base URL.
        timeout: Per-request timeout in seconds for the owned client.
        now: Clock used to turn ``expiresIn`` into absolute timestamps.

    Example::

        async with HttpSsoClient("eu-west-1") as remote:
            registration = await remote.register_client("ssoflow@0.1")
    """

    def __init__(
        self,
        region: str,
        http_client: Optional[httpx.AsyncClient] = None,
        oidc_endpoint: Optional[str] = None,
        portal_endpoint: Optional[str] = None,
        timeout: float = 30.0,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._region = region
        self._oidc = (oidc_endpoint or f"https://oidc.{region}.amazonaws.com").rstrip("/")
        self._portal = (
            portal_endpoint or f"https://portal.sso.{region}.amazonaws.com"
        ).rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout, headers={"Accept": "application/json"}
        )
        self._now = now

    async def __aenter__(self) -> HttpSsoClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------ #
    # SSO OIDC
    # ------------------------------------------------------------------ #

    async def register_client(self, client_name: str) -> ClientRegistration:
        operation = "RegisterClient"
        payload = await self._call(
            operation,
            "POST",
            f"{self._oidc}/client/register",
            json={"clientName": client_name, "clientType": "public"},
        )
        expires = _require(payload, "clientSecretExpiresAt", operation)
        with _parsing(operation):
            return ClientRegistration(
                client_id=_require(payload, "clientId", operation),
                client_secret=_require(payload, "clientSecret", operation),
                client_secret_expires_at=datetime.fromtimestamp(int(expires), timezone.utc),
            )

    async def start_device_authorization(
        self, client_id: str, client_secret: str, start_url: str
    ) -> VerificationChallenge:
        operation = "StartDeviceAuthorization"
        payload = await self._call(
            operation,
            "POST",
            f"{self._oidc}/device_authorization",
            json={
                "clientId": client_id,
                "clientSecret": client_secret,
                "startUrl": start_url,
            },
        )
        verification_url = _require(payload, "verificationUriComplete", operation)
        try:
            is_url = httpx.URL(str(verification_url)).is_absolute_url
        except httpx.InvalidURL:
            is_url = False
        if not is_url:
            raise InvalidResponseError(
                f"invalid {operation} response: verificationUriComplete "
                f"is not a valid URL ({verification_url!r})"
            )
        with _parsing(operation):
            return VerificationChallenge(
                device_code=_require(payload, "deviceCode", operation),
                user_code=_require(payload, "userCode", operation),
                verification_url=verification_url,
                poll_interval=float(_require(payload, "interval", operation)),
                expires_at=self._now()
                + timedelta(seconds=int(_require(payload, "expiresIn", operation))),
            )

    async def create_token(
        self,
        client_id: str,
        client_secret: str,
        device_code: str,
        user_code: str,
    ) -> BearerToken:
        operation = "CreateToken"
        payload = await self._call(
            operation,
            "POST",
            f"{self._oidc}/token",
            json={
                "clientId": client_id,
                "clientSecret": client_secret,
                "grantType": DEVICE_CODE_GRANT_TYPE,
                "deviceCode": device_code,
                "code": user_code,
            },
        )
        expires_in = _require(payload, "expiresIn", operation)
        with _parsing(operation):
            return BearerToken(
                access_token=_require(payload, "accessToken", operation),
                expires_at=self._now() + timedelta(seconds=int(expires_in)),
            )

    # ------------------------------------------------------------------ #
    # SSO portal
    # ------------------------------------------------------------------ #

    async def get_role_credentials(
        self, access_token: str, account_id: str, role_name: str
    ) -> SessionCredentials:
        operation = "GetRoleCredentials"
        payload = await self._call(
            operation,
            "GET",
            f"{self._portal}/federation/credentials",
            params={"account_id": account_id, "role_name": role_name},
            headers={"x-amz-sso_bearer_token": access_token},
        )
        credentials = _require(payload, "roleCredentials", operation)
        expiration = _require(credentials, "expiration", operation)
        with _parsing(operation):
            return SessionCredentials(
                access_key_id=_require(credentials, "accessKeyId", operation),
                secret_access_key=_require(credentials, "secretAccessKey", operation),
                session_token=_require(credentials, "sessionToken", operation),
                expires_at=datetime.fromtimestamp(int(expiration) / 1000, timezone.utc),
            )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _call(
        self,
        operation: str,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            RemoteError: On transport failure or a non-2xx status, using the
                subclass that matches the error code where one is known.
            InvalidResponseError: If a 2xx body is not JSON.
        """
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteError(f"{operation} request failed: {exc}") from exc

        try:
            body: Any = response.json()
        except ValueError:
            body = None

        if response.is_success:
            if body is None:
                raise InvalidResponseError(f"invalid {operation} response: body is not JSON")
            return body

        code = _error_code(response, body)
        error_type = _ERROR_TYPES.get(code, RemoteError)
        message = _error_message(response, body)
        detail = f"{code}: {message}" if code else message
        raise error_type(
            f"{operation} failed with status {response.status_code}: {detail}"
        )

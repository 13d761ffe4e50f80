"""Abstract remote operations and their error taxonomy.

This module defines the boundary between the flow and the SSO services:

- :class:`SsoRemote` -- the abstract base class every adapter extends.  It
  covers the four calls the flow needs: ``RegisterClient``,
  ``StartDeviceAuthorization`` and ``CreateToken`` (SSO OIDC), and
  ``GetRoleCredentials`` (SSO portal).
- :class:`RemoteError` and its subclasses -- how an adapter reports
  failures.  The device poller distinguishes the protocol signals
  (:class:`AuthorizationPendingError`, :class:`SlowDownError`,
  :class:`ExpiredTokenError`); everything else becomes an
  :class:`~ssoflow.exceptions.ApiError` at the flow boundary.

Remote errors never escape :meth:`ssoflow.flow.SsoFlow.authenticate`.

See Also:
    :class:`ssoflow.client.async_client.HttpSsoClient` for the HTTP adapter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ssoflow.models import (
    BearerToken,
    ClientRegistration,
    SessionCredentials,
    VerificationChallenge,
)

DEVICE_CODE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"


class RemoteError(Exception):
    """A remote call failed (transport error or error response)."""


class InvalidResponseError(RemoteError):
    """A remote call succeeded but its response is missing or mistypes a field."""


class AuthorizationPendingError(RemoteError):
    """The user has not yet completed the out-of-band grant."""


class SlowDownError(RemoteError):
    """The client is polling too fast and must increase its interval."""


class ExpiredTokenError(RemoteError):
    """The device code expired before the user granted access."""


class SsoRemote(ABC):
    """Abstract base class for SSO service adapters.

    Implementations return fully validated models or raise
    :class:`RemoteError`.  Partial responses are never returned; a missing
    field, or one of the wrong type or range, is an
    :class:`InvalidResponseError`.
    """

    @abstractmethod
    async def register_client(self, client_name: str) -> ClientRegistration:
        """Register a public OIDC client named *client_name*."""
        ...

    @abstractmethod
    async def start_device_authorization(
        self, client_id: str, client_secret: str, start_url: str
    ) -> VerificationChallenge:
        """Begin a device authorization against the portal at *start_url*."""
        ...

    @abstractmethod
    async def create_token(
        self,
        client_id: str,
        client_secret: str,
        device_code: str,
        user_code: str,
    ) -> BearerToken:
        """Exchange an authorized device code for a bearer token.

        Raises:
            AuthorizationPendingError: The user has not granted access yet.
            SlowDownError: The caller must poll less often.
            ExpiredTokenError: The device code expired.
            RemoteError: Any other failure.
        """
        ...

    @abstractmethod
    async def get_role_credentials(
        self, access_token: str, account_id: str, role_name: str
    ) -> SessionCredentials:
        """Exchange a bearer token for credentials of *role_name* in *account_id*."""
        ...

    async def aclose(self) -> None:
        """Release any resources held by the adapter.  No-op by default."""

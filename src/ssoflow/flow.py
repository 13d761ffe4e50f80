"""The end-to-end SSO authentication flow.

:class:`SsoFlow` chains three cached steps:

1. ``client`` -- a :class:`~ssoflow.models.ClientRegistration`, valid until
   its secret expires.
2. ``token`` -- a :class:`~ssoflow.models.BearerToken` from the device
   flow.  A cached, still-valid token skips the prompt entirely.
3. ``credentials`` -- :class:`~ssoflow.models.SessionCredentials` for the
   configured account and role.

All three share the configuration fingerprint; the prefix alone
distinguishes them on disk.

Error mapping at this boundary:

* :class:`~ssoflow.exceptions.CacheError` passes through.
* :class:`~ssoflow.client.base.RemoteError` from any step becomes
  :class:`~ssoflow.exceptions.ApiError`.
* :class:`~ssoflow.exceptions.VerificationPromptError` and
  :class:`~ssoflow.exceptions.VerificationPromptTimeout` come only from the
  token step.

A provider chain relies on this classification to decide between "try the
next provider" and "stop, this provider was in charge".
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, TypeVar

from ssoflow import CLIENT_NAME
from ssoflow.cache import ExpiryCache
from ssoflow.chain import CredentialProvider
from ssoflow.client import HttpSsoClient, RemoteError, SsoRemote
from ssoflow.device_code import DeviceAuthorizationPoller
from ssoflow.exceptions import ApiError
from ssoflow.models import BearerToken, ClientRegistration, SessionCredentials, SsoConfig
from ssoflow.prompt import PromptLike, as_prompt

if TYPE_CHECKING:
    from ssoflow.builder import SsoFlowBuilder

T = TypeVar("T")


def _api_call(compute: Callable[[], Awaitable[T]]) -> Callable[[], Awaitable[T]]:
    """Wrap *compute* so remote failures surface as :class:`ApiError`."""

    async def wrapped() -> T:
        try:
            return await compute()
        except RemoteError as exc:
            raise ApiError(str(exc)) from exc

    return wrapped


class SsoFlow(CredentialProvider):
    """A configured AWS SSO authentication flow.

    Usually obtained from :meth:`create` or :meth:`builder`.  The flow takes
    ownership of *remote* and closes it in :meth:`aclose`.

    Args:
        config: The SSO configuration.
        verification_prompt: Prompt (or ``async def (url)``) used when a new
            token is needed.
        cache: Artifact cache.  Defaults to a disabled cache.
        remote: SSO service adapter.  Defaults to
            :class:`~ssoflow.client.HttpSsoClient` for ``config.region``.
        sleep: Sleep coroutine used between token polls.

    Example::

        async with await SsoFlow.create(BrowserPrompt()) as flow:
            credentials = await flow.authenticate()
    """

    typed_errors = True

    def __init__(
        self,
        config: SsoConfig,
        verification_prompt: PromptLike,
        cache: Optional[ExpiryCache] = None,
        remote: Optional[SsoRemote] = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self._prompt = as_prompt(verification_prompt)
        self._cache = cache or ExpiryCache(None)
        self._remote = remote or HttpSsoClient(config.region)
        self._poller = DeviceAuthorizationPoller(self._remote, sleep=sleep)

    @staticmethod
    def builder() -> SsoFlowBuilder:
        """Return a :class:`~ssoflow.builder.SsoFlowBuilder` with default settings."""
        from ssoflow.builder import SsoFlowBuilder

        return SsoFlowBuilder()

    @classmethod
    async def create(cls, verification_prompt: PromptLike) -> SsoFlow:
        """Build a flow from the default profile and cache location.

        Configuration errors surface here, separately from the flow errors
        raised later by :meth:`authenticate`.

        Raises:
            ConfigError: If the profile is missing or incomplete.
        """
        return await cls.builder().verification_prompt(verification_prompt).build()

    @property
    def cache(self) -> ExpiryCache:
        return self._cache

    @property
    def poller(self) -> DeviceAuthorizationPoller:
        return self._poller

    async def __aenter__(self) -> SsoFlow:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._remote.aclose()

    def __repr__(self) -> str:
        return (
            f"SsoFlow(config={self.config!r}, cache_dir={self._cache.directory!r}, "
            f"remote={type(self._remote).__name__})"
        )

    async def authenticate(self) -> SessionCredentials:
        """Perform the flow and return session credentials.

        Raises:
            CacheError: A cache file was corrupt, unreadable, or unwritable.
            ApiError: An SSO API call failed or returned a malformed response.
            VerificationPromptError: The prompt failed.
            VerificationPromptTimeout: The user did not grant access in time.
        """
        fingerprint = self.config.fingerprint()

        registration = await self._cache.get_or_init(
            "client",
            fingerprint,
            ClientRegistration,
            _api_call(lambda: self._poller.register(CLIENT_NAME)),
        )

        token = await self._cache.get_or_init(
            "token",
            fingerprint,
            BearerToken,
            _api_call(
                lambda: self._poller.run(registration, self.config.start_url, self._prompt)
            ),
        )

        return await self._cache.get_or_init(
            "credentials",
            fingerprint,
            SessionCredentials,
            _api_call(
                lambda: self._remote.get_role_credentials(
                    token.access_token, self.config.account_id, self.config.role_name
                )
            ),
        )

    async def credentials(self) -> SessionCredentials:
        return await self.authenticate()


async def authenticate(verification_prompt: PromptLike) -> SessionCredentials:
    """Run a default SSO flow with *verification_prompt*.

    Configuration comes from the AWS shared config file (``AWS_CONFIG_FILE``
    / ``AWS_PROFILE``) and artifacts are cached under the user cache
    directory.  Use :meth:`SsoFlow.create` to separate configuration errors
    from flow errors, or :meth:`SsoFlow.builder` for other settings.

    Example::

        async def prompt(url: str) -> None:
            print(f"Go to {url} to sign in with SSO")

        credentials = await ssoflow.authenticate(prompt)

    Raises:
        ConfigError: If the profile is missing or incomplete.
        FlowError: If authentication fails (see :meth:`SsoFlow.authenticate`).
    """
    async with await SsoFlow.create(verification_prompt) as flow:
        return await flow.authenticate()

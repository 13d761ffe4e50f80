"""Fluent construction of :class:`~ssoflow.flow.SsoFlow`."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Union

from ssoflow.cache import ExpiryCache
from ssoflow.chain import CredentialProvider
from ssoflow.client import SsoRemote
from ssoflow.config import resolve_cache_dir
from ssoflow.exceptions import ConfigError
from ssoflow.flow import SsoFlow
from ssoflow.models import SessionCredentials
from ssoflow.profile import ConfigSource, ProfileSource
from ssoflow.prompt import PromptLike, VerificationPrompt, as_prompt

RemoteFactory = Callable[..., SsoRemote]


class SsoFlowBuilder(CredentialProvider):
    """Collect settings for an :class:`~ssoflow.flow.SsoFlow`.

    Defaults: configuration from :class:`~ssoflow.profile.ProfileSource`,
    caching under :func:`~ssoflow.config.resolve_cache_dir`, and the HTTP
    adapter for the configured region.  A verification prompt is required.

    The builder is also a credential provider: each call to
    :meth:`credentials` loads configuration afresh, so a chain can hold a
    builder whose profile may not exist yet.

    Example::

        flow = await (
            SsoFlow.builder()
            .config(ProfileSource().with_profile("work"))
            .verification_prompt(BrowserPrompt())
            .build()
        )
    """

    typed_errors = True

    def __init__(self) -> None:
        self._cache_dir: Optional[Path] = None
        self._cache_disabled = False
        self._config_source: ConfigSource = ProfileSource()
        self._prompt: Optional[VerificationPrompt] = None
        self._remote: Optional[Union[SsoRemote, RemoteFactory]] = None

    def cache_dir(self, path: str | Path) -> SsoFlowBuilder:
        """Cache artifacts under *path* and re-enable caching."""
        self._cache_dir = Path(path)
        self._cache_disabled = False
        return self

    def no_cache(self) -> SsoFlowBuilder:
        """Disable caching; every step calls the service."""
        self._cache_disabled = True
        return self

    def config(self, source: ConfigSource) -> SsoFlowBuilder:
        """Load configuration from *source* (an :class:`SsoConfig` works too)."""
        self._config_source = source
        return self

    def verification_prompt(self, prompt: PromptLike) -> SsoFlowBuilder:
        self._prompt = as_prompt(prompt)
        return self

    def remote(self, remote: Union[SsoRemote, RemoteFactory]) -> SsoFlowBuilder:
        """Use *remote*, or call it with the loaded :class:`SsoConfig` to make one."""
        self._remote = remote
        return self

    def __repr__(self) -> str:
        return (
            f"SsoFlowBuilder(config={self._config_source!r}, "
            f"cache_dir={None if self._cache_disabled else self._cache_dir!r})"
        )

    async def build(self) -> SsoFlow:
        """Load configuration and assemble the flow.

        Raises:
            ConfigError: If no verification prompt was set, or configuration
                cannot be loaded.
        """
        if self._prompt is None:
            raise ConfigError("a verification prompt must be set before building an SSO flow")

        config = await self._config_source.load()

        cache_dir = None if self._cache_disabled else resolve_cache_dir(self._cache_dir)

        remote = self._remote
        if remote is not None and not isinstance(remote, SsoRemote):
            remote = remote(config)

        return SsoFlow(config, self._prompt, cache=ExpiryCache(cache_dir), remote=remote)

    async def credentials(self) -> SessionCredentials:
        async with await self.build() as flow:
            return await flow.authenticate()

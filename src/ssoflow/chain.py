"""Credential provider chains.

:class:`CredentialProvider` is the minimal interface shared by everything
that can produce :class:`~ssoflow.models.SessionCredentials`:
:class:`~ssoflow.flow.SsoFlow`, :class:`~ssoflow.builder.SsoFlowBuilder`, and
any caller-defined provider.

:class:`ChainProvider` tries providers in order.  Whether a failure moves
on to the next provider depends on the error:

* An :class:`~ssoflow.exceptions.SsoError` with ``falls_through`` set
  (:class:`~ssoflow.exceptions.ConfigError`,
  :class:`~ssoflow.exceptions.CacheError`) means "not applicable here":
  try the next provider.
* Any other ``SsoError`` (API or verification failures) means the provider
  was in charge and failed: the chain stops and re-raises it.
* Exceptions other than ``SsoError`` from foreign providers are collected
  and the chain continues.  Providers with ``typed_errors`` set (the
  ssoflow providers) only fail with ``SsoError``, so anything else from
  them is a bug and is re-raised.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from ssoflow.exceptions import CredentialsNotFoundError, SsoError
from ssoflow.models import SessionCredentials

logger = logging.getLogger(__name__)


class CredentialProvider(ABC):
    """Abstract source of session credentials."""

    #: Every failure is an SsoError; other exceptions are not swallowed by a chain.
    typed_errors = False

    @abstractmethod
    async def credentials(self) -> SessionCredentials:
        """Return session credentials or raise."""
        ...


class ChainProvider(CredentialProvider):
    """Provide credentials from the first provider that succeeds.

    Example::

        chain = (
            ChainProvider()
            .push(SsoFlow.builder().verification_prompt(BrowserPrompt()))
            .push(my_fallback_provider)
        )
        credentials = await chain.credentials()
    """

    def __init__(self) -> None:
        self._providers: list[CredentialProvider] = []

    def push(self, provider: CredentialProvider) -> ChainProvider:
        """Append *provider*; it runs only if all earlier providers fall through."""
        self._providers.append(provider)
        return self

    def __len__(self) -> int:
        return len(self._providers)

    def __repr__(self) -> str:
        return f"ChainProvider(<{len(self._providers)} entries>)"

    async def credentials(self) -> SessionCredentials:
        """Return credentials from the first applicable provider.

        Raises:
            SsoError: The first non-fall-through error from an ssoflow provider.
            Exception: Any non-SsoError from a provider with ``typed_errors``.
            CredentialsNotFoundError: Every provider failed; the message lists
                each error.
        """
        errors: list[Exception] = []
        for provider in self._providers:
            try:
                return await provider.credentials()
            except SsoError as exc:
                if not exc.falls_through:
                    raise
                logger.debug("Provider %r not applicable: %s", provider, exc)
                errors.append(exc)
            except Exception as exc:
                if provider.typed_errors:
                    raise
                logger.warning("Provider %r failed: %s", provider, exc)
                errors.append(exc)

        messages = "\n".join(f"- {error}" for error in errors)
        raise CredentialsNotFoundError(
            "Couldn't find AWS credentials through any configured provider; "
            f"all errors:\n\n{messages}"
        )

"""ssoflow -- AWS IAM Identity Center (SSO) credentials via the device flow.

This package runs the OAuth2 device authorization flow against AWS SSO and
exchanges the resulting bearer token for short-lived role credentials.
Client registrations, tokens and credentials are cached on disk until
shortly before they expire, so the user is only prompted when necessary.

Typical use::

    import ssoflow

    credentials = await ssoflow.authenticate(ssoflow.BrowserPrompt())

Or from the shell, as an AWS ``credential_process``::

    ssoflow credential-process --profile work

Modules:
    flow: The :class:`SsoFlow` orchestrator and :func:`authenticate`.
    builder: :class:`SsoFlowBuilder` for non-default settings.
    profile: AWS shared config file parsing.
    cache: On-disk expiry cache.
    client: SSO service adapter and its error taxonomy.
    device_code: The device authorization polling state machine.
    prompt: Verification prompts.
    chain: Credential provider chains.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

CLIENT_NAME = "ssoflow@" + ".".join(__version__.split(".")[:2])
"""OIDC client name; also names the versioned cache directory."""

from ssoflow.builder import SsoFlowBuilder  # noqa: E402
from ssoflow.chain import ChainProvider, CredentialProvider  # noqa: E402
from ssoflow.exceptions import (  # noqa: E402
    ApiError,
    CacheError,
    ConfigError,
    CredentialsNotFoundError,
    FlowError,
    SsoError,
    VerificationPromptError,
    VerificationPromptTimeout,
)
from ssoflow.flow import SsoFlow, authenticate  # noqa: E402
from ssoflow.models import SessionCredentials, SsoConfig  # noqa: E402
from ssoflow.profile import ConfigSource, ProfileSource  # noqa: E402
from ssoflow.prompt import (  # noqa: E402
    BrowserPrompt,
    NonInteractivePrompt,
    PrintPrompt,
    VerificationPrompt,
)

__all__ = [
    "ApiError",
    "BrowserPrompt",
    "CLIENT_NAME",
    "CacheError",
    "ChainProvider",
    "ConfigError",
    "ConfigSource",
    "CredentialProvider",
    "CredentialsNotFoundError",
    "FlowError",
    "NonInteractivePrompt",
    "PrintPrompt",
    "ProfileSource",
    "SessionCredentials",
    "SsoConfig",
    "SsoError",
    "SsoFlow",
    "SsoFlowBuilder",
    "VerificationPrompt",
    "VerificationPromptError",
    "VerificationPromptTimeout",
    "authenticate",
    "__version__",
]

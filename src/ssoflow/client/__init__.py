"""Remote operations for the SSO flow.

Provides the abstract :class:`SsoRemote` boundary, its error taxonomy, and
:class:`HttpSsoClient`, the :mod:`httpx`-based adapter used by default.
"""

from ssoflow.client.async_client import HttpSsoClient
from ssoflow.client.base import (
    AuthorizationPendingError,
    ExpiredTokenError,
    InvalidResponseError,
    RemoteError,
    SlowDownError,
    SsoRemote,
)

__all__ = [
    "AuthorizationPendingError",
    "ExpiredTokenError",
    "HttpSsoClient",
    "InvalidResponseError",
    "RemoteError",
    "SlowDownError",
    "SsoRemote",
]

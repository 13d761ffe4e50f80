"""Exception hierarchy for ssoflow.

All public exceptions inherit from :class:`SsoError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`ssoflow.exit_codes`
and a ``falls_through`` flag consulted by
:class:`~ssoflow.chain.ChainProvider`.  The CLI entry point in
:func:`ssoflow.app.main` catches ``SsoError`` and exits with the matching
code.

Subclass hierarchy::

    SsoError (exit 1)
    +-- ConfigError                    (exit 3, falls through)
    +-- FlowError                      (exit 1)
    |   +-- CacheError                 (exit 4, falls through)
    |   +-- ApiError                   (exit 5)
    |   +-- VerificationPromptError    (exit 6)
    |   +-- VerificationPromptTimeout  (exit 7)
    +-- CredentialsNotFoundError       (exit 1)

A :class:`ConfigError` means the flow is not applicable as configured, so a
provider chain moves on.  Once a profile was found, an :class:`ApiError` is
authoritative and stops the chain, since falling through could hide a real
account or permission problem.
"""

from __future__ import annotations

from ssoflow.exit_codes import (
    EXIT_API_ERROR,
    EXIT_CACHE_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_VERIFICATION_PROMPT_ERROR,
    EXIT_VERIFICATION_TIMEOUT,
)


class SsoError(Exception):
    """Base exception for all ssoflow errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    falls_through: bool = False

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(SsoError):
    """Raised when SSO configuration cannot be located, read, or completed."""

    exit_code = EXIT_CONFIG_ERROR
    falls_through = True


class FlowError(SsoError):
    """Base class for failures during the authentication flow itself."""


class CacheError(FlowError):
    """Raised when a cache file is unreadable, corrupt, or unwritable."""

    exit_code = EXIT_CACHE_ERROR
    falls_through = True

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(f"SSO authentication failed due to: cache error: {message}", exit_code)


class ApiError(FlowError):
    """Raised when an SSO API call fails or returns a malformed response."""

    exit_code = EXIT_API_ERROR

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(f"SSO authentication failed due to: API error: {message}", exit_code)


class VerificationPromptError(FlowError):
    """Raised when the verification prompt itself fails.

    The prompt's own exception is kept on :attr:`error` (and as
    ``__cause__``) so callers can inspect it.
    """

    exit_code = EXIT_VERIFICATION_PROMPT_ERROR

    def __init__(self, error: BaseException):
        super().__init__(f"SSO authentication failed during verification: {error}")
        self.error = error


class VerificationPromptTimeout(FlowError):
    """Raised when the device code expired before the user granted access."""

    exit_code = EXIT_VERIFICATION_TIMEOUT

    def __init__(self) -> None:
        super().__init__("SSO authentication failed: timed out waiting for verification")


class CredentialsNotFoundError(SsoError):
    """Raised when every provider in a :class:`~ssoflow.chain.ChainProvider` failed."""

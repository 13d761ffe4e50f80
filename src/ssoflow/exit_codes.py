"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~ssoflow.exceptions.SsoError` subclass.
Wrapper scripts can inspect the exit code to tell "no SSO profile here"
apart from "the identity provider rejected us" without parsing stderr.

Example::

    $ ssoflow credential-process --profile work
    $ echo $?
    3   # EXIT_CONFIG_ERROR -- the profile has no SSO configuration
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONFIG_ERROR = 3
"""SSO configuration could not be located, read, or completed."""

EXIT_CACHE_ERROR = 4
"""A cache file was unreadable, corrupt, or could not be written."""

EXIT_API_ERROR = 5
"""An SSO API call failed or returned a malformed response."""

EXIT_VERIFICATION_PROMPT_ERROR = 6
"""The verification prompt could not direct the user to grant access."""

EXIT_VERIFICATION_TIMEOUT = 7
"""The user did not grant access before the device code expired."""

EXIT_INTERRUPTED = 130
"""The command was cancelled with Ctrl-C."""

"""OAuth2 Device Authorization Grant (:rfc:`8628`) against AWS SSO OIDC.

:class:`DeviceAuthorizationPoller` drives the interactive half of the flow:

    1. ``RegisterClient`` to obtain a client id/secret (cached by the
       caller until the secret expires).
    2. ``StartDeviceAuthorization`` to obtain a device code, a user code,
       and a verification URL with the user code embedded.
    3. The :class:`~ssoflow.prompt.VerificationPrompt` is awaited with that
       URL *before* any polling.
    4. ``CreateToken`` is polled until the user grants access, the client
       is told to slow down, or the device code expires.

States::

    REGISTERING -> AUTHORIZING -> POLLING -> SUCCEEDED
                        |             |
                        +-------------+----> FAILED

Polling ends on the identity provider's ``expired_token`` signal, not on a
client-side timer.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable

from ssoflow.client.base import (
    AuthorizationPendingError,
    ExpiredTokenError,
    RemoteError,
    SlowDownError,
    SsoRemote,
)
from ssoflow.exceptions import ApiError, VerificationPromptError, VerificationPromptTimeout
from ssoflow.models import BearerToken, ClientRegistration
from ssoflow.prompt import VerificationPrompt

logger = logging.getLogger(__name__)

SLOW_DOWN_INCREMENT = 5.0
"""Seconds added to the polling interval on each ``slow_down`` response."""


class PollState(str, enum.Enum):
    """Current stage of a :class:`DeviceAuthorizationPoller`."""

    IDLE = "idle"
    REGISTERING = "registering"
    AUTHORIZING = "authorizing"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class DeviceAuthorizationPoller:
    """Run the device authorization state machine for one flow.

    Args:
        remote: The SSO service adapter.
        sleep: Coroutine function used between polls.  Injectable for tests.

    Attributes:
        state: The current :class:`PollState`.
        attempts: Number of ``CreateToken`` calls made by the last :meth:`run`.
    """

    def __init__(
        self,
        remote: SsoRemote,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._remote = remote
        self._sleep = sleep
        self.state = PollState.IDLE
        self.attempts = 0

    def _transition(self, state: PollState) -> None:
        logger.debug("Device authorization: %s -> %s", self.state.value, state.value)
        self.state = state

    async def register(self, client_name: str) -> ClientRegistration:
        """Register a public OIDC client.

        Raises:
            RemoteError: Propagated from the adapter; the flow maps it to
                :class:`~ssoflow.exceptions.ApiError`.
        """
        self._transition(PollState.REGISTERING)
        try:
            registration = await self._remote.register_client(client_name)
        except RemoteError:
            self._transition(PollState.FAILED)
            raise
        logger.info("Registered SSO OIDC client %s", registration.client_id)
        return registration

    async def run(
        self,
        registration: ClientRegistration,
        start_url: str,
        prompt: VerificationPrompt,
    ) -> BearerToken:
        """Authorize the device, prompt the user, and poll for a token.

        Args:
            registration: Client credentials from :meth:`register`.
            start_url: The SSO user portal URL.
            prompt: Capability that directs the user to the verification URL.

        Returns:
            The bearer token issued once the user grants access.

        Raises:
            ApiError: ``StartDeviceAuthorization`` or ``CreateToken`` failed
                with anything other than the polling signals.
            VerificationPromptError: The prompt raised; no poll was made.
            VerificationPromptTimeout: The device code expired.
        """
        self.attempts = 0
        self._transition(PollState.AUTHORIZING)
        try:
            challenge = await self._remote.start_device_authorization(
                registration.client_id, registration.client_secret, start_url
            )
        except RemoteError as exc:
            self._transition(PollState.FAILED)
            raise ApiError(str(exc)) from exc

        try:
            await prompt.prompt(challenge.verification_url)
        except Exception as exc:
            self._transition(PollState.FAILED)
            raise VerificationPromptError(exc) from exc

        self._transition(PollState.POLLING)
        interval = challenge.poll_interval
        while True:
            self.attempts += 1
            try:
                token = await self._remote.create_token(
                    registration.client_id,
                    registration.client_secret,
                    challenge.device_code,
                    challenge.user_code,
                )
            except AuthorizationPendingError:
                logger.debug("Authorization pending, retrying in %ss", interval)
            except SlowDownError:
                interval += SLOW_DOWN_INCREMENT
                logger.debug("Asked to slow down, retrying in %ss", interval)
            except ExpiredTokenError as exc:
                self._transition(PollState.FAILED)
                raise VerificationPromptTimeout() from exc
            except RemoteError as exc:
                self._transition(PollState.FAILED)
                raise ApiError(str(exc)) from exc
            else:
                self._transition(PollState.SUCCEEDED)
                logger.info("Obtained SSO access token after %d attempt(s)", self.attempts)
                return token
            await self._sleep(interval)

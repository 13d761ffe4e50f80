"""Verification prompts: directing a human to grant access.

The device flow requires the user to visit a URL and approve the request.
How that happens depends on the context (terminal, GUI, CI), so the flow
only depends on the :class:`VerificationPrompt` capability:

- :class:`PrintPrompt` -- writes the URL to stderr.
- :class:`BrowserPrompt` -- writes the URL and opens it in a browser.
- :class:`NonInteractivePrompt` -- always fails; authentication still works
  while tokens are cached.
- :class:`CallablePrompt` -- adapts a plain ``async def prompt(url)``.

A prompt signals failure by raising.  The flow wraps that exception in a
:class:`~ssoflow.exceptions.VerificationPromptError` and never starts
polling.
"""

from __future__ import annotations

import asyncio
import sys
import webbrowser
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Union


class VerificationPrompt(ABC):
    """Abstract base class for verification prompts."""

    @abstractmethod
    async def prompt(self, verification_url: str) -> None:
        """Direct the user to *verification_url*.

        Returning means the user has been asked; raising means they could
        not be.  Implementations may wait for the user as long as they like.
        """
        ...


class CallablePrompt(VerificationPrompt):
    """Wrap an ``async def (url) -> None`` function as a prompt."""

    def __init__(self, func: Callable[[str], Awaitable[None]]) -> None:
        self._func = func

    async def prompt(self, verification_url: str) -> None:
        await self._func(verification_url)


PromptLike = Union[VerificationPrompt, Callable[[str], Awaitable[None]]]


def as_prompt(prompt: PromptLike) -> VerificationPrompt:
    """Return *prompt* as a :class:`VerificationPrompt`, wrapping callables."""
    if isinstance(prompt, VerificationPrompt):
        return prompt
    if callable(prompt):
        return CallablePrompt(prompt)
    raise TypeError(f"not a verification prompt: {prompt!r}")


class PrintPrompt(VerificationPrompt):
    """Print the verification URL to stderr and return immediately."""

    async def prompt(self, verification_url: str) -> None:
        sys.stderr.write("\n")
        sys.stderr.write(f"Go to {verification_url} to sign in with SSO\n")
        sys.stderr.write("\nWaiting for authorization...\n")
        sys.stderr.flush()


class BrowserPrompt(PrintPrompt):
    """Print the verification URL, then try to open it in the default browser.

    The URL is always printed first so the user can copy it when no browser
    is available.
    """

    async def prompt(self, verification_url: str) -> None:
        await super().prompt(verification_url)
        await asyncio.to_thread(webbrowser.open, verification_url)


class InteractionRequiredError(Exception):
    """Raised by :class:`NonInteractivePrompt`."""

    def __init__(self) -> None:
        super().__init__("interactive authentication required")


class NonInteractivePrompt(VerificationPrompt):
    """Refuse to prompt; only cached tokens can satisfy the flow."""

    async def prompt(self, verification_url: str) -> None:
        raise InteractionRequiredError()

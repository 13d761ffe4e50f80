"""Credential commands -- run the SSO flow from the shell.

Three commands share the same options and differ only in how they render
the resulting :class:`~ssoflow.models.SessionCredentials`:

* ``ssoflow login`` -- authenticate (prompting if needed) and show the
  access key id and expiry.  Secrets are never displayed.
* ``ssoflow credential-process`` -- print the JSON document expected by the
  AWS ``credential_process`` setting.
* ``ssoflow env`` -- print ``export`` lines for ``eval``.

Typical use in ``~/.aws/config``::

    [profile work-cli]
    credential_process = ssoflow credential-process --profile work
"""

from __future__ import annotations

import asyncio
import shlex
from pathlib import Path
from typing import Callable, Optional

import typer

from ssoflow.builder import SsoFlowBuilder
from ssoflow.exceptions import SsoError
from ssoflow.models import SessionCredentials
from ssoflow.output import error, format_response, print_data, print_json, success, suggest
from ssoflow.profile import ProfileSource
from ssoflow.prompt import BrowserPrompt, PrintPrompt


def _builder(
    profile: Optional[str],
    config_file: Optional[Path],
    cache_dir: Optional[Path],
    no_cache: bool,
    no_browser: bool,
) -> SsoFlowBuilder:
    builder = (
        SsoFlowBuilder()
        .config(ProfileSource(config_file, profile))
        .verification_prompt(PrintPrompt() if no_browser else BrowserPrompt())
    )
    if cache_dir is not None:
        builder.cache_dir(cache_dir)
    if no_cache:
        builder.no_cache()
    return builder


def _obtain(builder: SsoFlowBuilder) -> SessionCredentials:
    """Run the flow to completion, converting ssoflow errors to an exit code."""
    try:
        return asyncio.run(builder.credentials())
    except SsoError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _run(
    render: Callable[[SessionCredentials], None],
    profile: Optional[str],
    config_file: Optional[Path],
    cache_dir: Optional[Path],
    no_cache: bool,
    no_browser: bool,
) -> None:
    builder = _builder(profile, config_file, cache_dir, no_cache, no_browser)
    render(_obtain(builder))


_PROFILE_HELP = "Profile in the AWS config file. Defaults to $AWS_PROFILE or 'default'."
_CONFIG_FILE_HELP = "AWS config file. Defaults to $AWS_CONFIG_FILE or ~/.aws/config."
_CACHE_DIR_HELP = "Cache directory. Defaults to $SSOFLOW_CACHE_DIR or the user cache dir."
_NO_CACHE_HELP = "Do not read or write cached tokens and credentials."
_NO_BROWSER_HELP = "Print the verification URL instead of opening a browser."


def login_command(
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help=_PROFILE_HELP),
    config_file: Optional[Path] = typer.Option(None, "--config-file", help=_CONFIG_FILE_HELP),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help=_CACHE_DIR_HELP),
    no_cache: bool = typer.Option(False, "--no-cache", help=_NO_CACHE_HELP),
    no_browser: bool = typer.Option(False, "--no-browser", help=_NO_BROWSER_HELP),
) -> None:
    """Sign in with AWS SSO and show which credentials were obtained.

    Prompts only when no valid token is cached.

    Example::

        ssoflow login --profile work
    """

    def render(credentials: SessionCredentials) -> None:
        success("Successfully signed in with AWS SSO.")
        format_response(
            {
                "AccessKeyId": credentials.access_key_id,
                "Expiration": credentials.expires_at.isoformat(),
            }
        )
        suggest("Use `ssoflow credential-process` as a credential_process in ~/.aws/config")

    _run(render, profile, config_file, cache_dir, no_cache, no_browser)


def credential_process_command(
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help=_PROFILE_HELP),
    config_file: Optional[Path] = typer.Option(None, "--config-file", help=_CONFIG_FILE_HELP),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help=_CACHE_DIR_HELP),
    no_cache: bool = typer.Option(False, "--no-cache", help=_NO_CACHE_HELP),
    no_browser: bool = typer.Option(False, "--no-browser", help=_NO_BROWSER_HELP),
) -> None:
    """Print credentials in the AWS credential_process JSON format."""

    def render(credentials: SessionCredentials) -> None:
        print_json(credentials.to_credential_process())

    _run(render, profile, config_file, cache_dir, no_cache, no_browser)


def env_command(
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help=_PROFILE_HELP),
    config_file: Optional[Path] = typer.Option(None, "--config-file", help=_CONFIG_FILE_HELP),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help=_CACHE_DIR_HELP),
    no_cache: bool = typer.Option(False, "--no-cache", help=_NO_CACHE_HELP),
    no_browser: bool = typer.Option(False, "--no-browser", help=_NO_BROWSER_HELP),
) -> None:
    """Print credentials as shell export statements.

    Example::

        eval "$(ssoflow env --profile work)"
    """

    def render(credentials: SessionCredentials) -> None:
        for name, value in credentials.to_env().items():
            print_data(f"export {name}={shlex.quote(value)}")

    _run(render, profile, config_file, cache_dir, no_cache, no_browser)

"""SSO configuration sources.

A :class:`ConfigSource` produces the :class:`~ssoflow.models.SsoConfig` for
a flow.  Two sources ship with ssoflow:

* :class:`~ssoflow.models.SsoConfig` itself -- static configuration.
* :class:`ProfileSource` -- reads a profile from the AWS shared config file.

Profile discovery:

* Config file: explicit path, else ``$AWS_CONFIG_FILE``, else
  ``~/.aws/config``.
* Profile: explicit name, else ``$AWS_PROFILE``, else ``default``.

The parser is line-oriented.  It tolerates blank lines and ``#`` comments
but is strict about the four required keys (``sso_region``,
``sso_start_url``, ``sso_account_id``, ``sso_role_name``); a partial
configuration is always a :class:`~ssoflow.exceptions.ConfigError`.
"""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ssoflow.exceptions import ConfigError
from ssoflow.models import SsoConfig

AWS_CONFIG_FILE = "AWS_CONFIG_FILE"
AWS_CONFIG_FILE_DEFAULT = (".aws", "config")

AWS_PROFILE = "AWS_PROFILE"
AWS_PROFILE_DEFAULT = "default"

_KEYS = {
    "sso_region": "region",
    "sso_start_url": "start_url",
    "sso_account_id": "account_id",
    "sso_role_name": "role_name",
}


class ConfigSource(ABC):
    """Abstract source of :class:`~ssoflow.models.SsoConfig`."""

    @abstractmethod
    async def load(self) -> SsoConfig:
        """Load the SSO configuration.

        Raises:
            ConfigError: If configuration cannot be located, read, or
                completed.
        """
        ...


ConfigSource.register(SsoConfig)


class ProfileSource(ConfigSource):
    """A profile in the AWS shared config file.

    Args:
        config_file: Path to the config file.  Defaults to
            ``$AWS_CONFIG_FILE`` or ``~/.aws/config``.
        profile: Profile name.  Defaults to ``$AWS_PROFILE`` or ``default``.

    Example::

        source = ProfileSource().with_config_file(".myconfig").with_profile("work")
        config = await source.load()
    """

    def __init__(
        self,
        config_file: Optional[str | Path] = None,
        profile: Optional[str] = None,
    ) -> None:
        self.config_file = Path(config_file) if config_file is not None else None
        self.profile = profile

    def with_config_file(self, path: str | Path) -> ProfileSource:
        """Return a copy reading from *path*."""
        return ProfileSource(path, self.profile)

    def with_profile(self, name: str) -> ProfileSource:
        """Return a copy selecting profile *name*."""
        return ProfileSource(self.config_file, name)

    def __repr__(self) -> str:
        return f"ProfileSource(config_file={self.config_file!r}, profile={self.profile!r})"

    async def load(self) -> SsoConfig:
        path = self.config_file or config_file_from_env()
        profile = self.profile or profile_from_env()
        text = await asyncio.to_thread(_read_config_file, path)
        return parse_profile(text, profile, path)


def config_file_from_env() -> Path:
    """Resolve the config file path from ``AWS_CONFIG_FILE`` or the home directory."""
    value = os.environ.get(AWS_CONFIG_FILE, "")
    if value:
        return Path(value).expanduser()
    try:
        home = Path.home()
    except RuntimeError as exc:
        raise ConfigError("could not determine home directory") from exc
    return home.joinpath(*AWS_CONFIG_FILE_DEFAULT)


def profile_from_env() -> str:
    """Resolve the profile name from ``AWS_PROFILE``."""
    return os.environ.get(AWS_PROFILE, "") or AWS_PROFILE_DEFAULT


def _read_config_file(path: Path) -> str:
    try:
        if not path.is_file():
            raise ConfigError(f"unable to read config file {path}: not a file")
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"unable to read config file {path}: {exc}") from exc


def _section_name(line: str) -> Optional[str]:
    """Return the profile named by a ``[profile x]`` or ``[x]`` header line."""
    if not (line.startswith("[") and line.endswith("]")):
        return None
    inner = line[1:-1]
    if inner.startswith("profile "):
        return inner[len("profile "):]
    return inner


def parse_profile(text: str, profile: str, path: Path | str = "<string>") -> SsoConfig:
    """Extract the SSO configuration of *profile* from config file *text*.

    The first section matching *profile* wins; scanning stops at the next
    section header.

    Raises:
        ConfigError: If the section is absent or any required key is missing.
    """
    in_profile = False
    values: dict[str, str] = {}

    for raw_line in text.splitlines():
        line = raw_line.strip(" ")
        if not line or line.startswith("#"):
            continue

        section = _section_name(line)
        if section is not None:
            if in_profile:
                break
            in_profile = section == profile
            continue

        if not in_profile:
            continue
        key, sep, value = line.partition("=")
        key, value = key.strip(" "), value.strip(" ")
        if sep and key in _KEYS and value:
            values[_KEYS[key]] = value

    if not in_profile:
        raise ConfigError(f"profile {profile} is not defined in config file {path}")

    missing = [key for key, field in _KEYS.items() if field not in values]
    if missing:
        raise ConfigError(
            f"incomplete SSO configuration in profile {profile}; missing: {', '.join(missing)}"
        )
    return SsoConfig(**values)

"""Shared test fixtures for ssoflow.

Provides isolated environments, sample configuration, an in-memory SSO
remote, and a CLI runner.  These fixtures are automatically discovered by
pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

from ssoflow.client import AuthorizationPendingError, RemoteError, SsoRemote
from ssoflow.models import (
    BearerToken,
    ClientRegistration,
    SessionCredentials,
    SsoConfig,
    VerificationChallenge,
    utc_now,
)
from ssoflow.output import reset_output

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

SSO_CONFIG_TEXT = """\
[default]
region = us-east-1

[profile work]
sso_start_url = https://myorg.awsapps.com/start
sso_region = eu-west-1
sso_account_id = 012345678910
sso_role_name = PowerUser
"""


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate every location ssoflow reads or writes under *tmp_path*.

    Points the XDG directories and ``AWS_CONFIG_FILE`` into *tmp_path*
    and clears ``AWS_PROFILE`` and ``SSOFLOW_CACHE_DIR``.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "aws-config"))
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("SSOFLOW_CACHE_DIR", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def aws_config_file(isolated_env: Path) -> Path:
    """Write :data:`SSO_CONFIG_TEXT` to the isolated ``AWS_CONFIG_FILE``."""
    path = isolated_env / "aws-config"
    path.write_text(SSO_CONFIG_TEXT)
    return path


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sso_config() -> SsoConfig:
    return SsoConfig(
        region="eu-west-1",
        start_url="https://myorg.awsapps.com/start",
        account_id="012345678910",
        role_name="PowerUser",
    )


@pytest.fixture
def registration() -> ClientRegistration:
    return ClientRegistration(
        client_id="client-id",
        client_secret="client-secret",
        client_secret_expires_at=NOW + timedelta(days=90),
    )


@pytest.fixture
def session_credentials() -> SessionCredentials:
    return SessionCredentials(
        access_key_id="ASIAEXAMPLE",
        secret_access_key="secret-key",
        session_token="session-token",
        expires_at=NOW + timedelta(hours=1),
    )


# ---------------------------------------------------------------------------
# Fake remote
# ---------------------------------------------------------------------------


class FakeRemote(SsoRemote):
    """In-memory :class:`SsoRemote` with scripted token responses.

    ``token_errors`` are raised by successive ``create_token`` calls before
    a token is returned.  Every call is recorded in ``calls``.
    """

    def __init__(
        self,
        token_errors: Optional[list[Exception]] = None,
        credentials: Optional[SessionCredentials] = None,
        expires_at: Optional[datetime] = None,
    ) -> None:
        self.token_errors = list(token_errors or [])
        self.credentials = credentials
        self.expires_at = expires_at or utc_now() + timedelta(hours=8)
        self.calls: list[str] = []
        self.register_error: Optional[RemoteError] = None
        self.credentials_error: Optional[RemoteError] = None
        self.closed = False

    async def register_client(self, client_name: str) -> ClientRegistration:
        self.calls.append("register_client")
        if self.register_error is not None:
            raise self.register_error
        return ClientRegistration(
            client_id="client-id",
            client_secret="client-secret",
            client_secret_expires_at=self.expires_at + timedelta(days=90),
        )

    async def start_device_authorization(
        self, client_id: str, client_secret: str, start_url: str
    ) -> VerificationChallenge:
        self.calls.append("start_device_authorization")
        return VerificationChallenge(
            device_code="device-code",
            user_code="ABCD-EFGH",
            verification_url=f"{start_url}/#/device?user_code=ABCD-EFGH",
            poll_interval=1,
            expires_at=self.expires_at,
        )

    async def create_token(
        self, client_id: str, client_secret: str, device_code: str, user_code: str
    ) -> BearerToken:
        self.calls.append("create_token")
        if self.token_errors:
            raise self.token_errors.pop(0)
        return BearerToken(access_token="access-token", expires_at=self.expires_at)

    async def get_role_credentials(
        self, access_token: str, account_id: str, role_name: str
    ) -> SessionCredentials:
        self.calls.append("get_role_credentials")
        if self.credentials_error is not None:
            raise self.credentials_error
        if self.credentials is not None:
            return self.credentials
        return SessionCredentials(
            access_key_id="ASIAEXAMPLE",
            secret_access_key="secret-key",
            session_token="session-token",
            expires_at=self.expires_at,
        )

    async def aclose(self) -> None:
        self.closed = True


class RecordingPrompt:
    """Async callable prompt that records URLs and optionally raises."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.urls: list[str] = []
        self.error = error

    async def __call__(self, verification_url: str) -> None:
        self.urls.append(verification_url)
        if self.error is not None:
            raise self.error


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote(token_errors=[AuthorizationPendingError("pending")])


@pytest.fixture
def recording_prompt() -> RecordingPrompt:
    return RecordingPrompt()


@pytest.fixture
def make_remote() -> type[FakeRemote]:
    """The FakeRemote class, for tests that script their own responses."""
    return FakeRemote


@pytest.fixture
def make_prompt() -> type[RecordingPrompt]:
    return RecordingPrompt


@pytest.fixture
def sleeps() -> list[float]:
    """Intervals passed to the injected sleep; see :func:`fake_sleep`."""
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]):
    """Sleep replacement that records the interval and returns at once."""

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()

"""Tests for the SsoFlow orchestrator.

The flow is assembled from a FakeRemote, a recording prompt, and an
ExpiryCache in tmp_path, so these tests cover the three cached steps and
the error mapping at the flow boundary end to end.
"""

from __future__ import annotations

import asyncio
import json
from datetime import timedelta
from pathlib import Path

import httpx
import pytest

from ssoflow import CLIENT_NAME
from ssoflow.cache import ExpiryCache
from ssoflow.chain import ChainProvider, CredentialProvider
from ssoflow.client import ExpiredTokenError, HttpSsoClient, InvalidResponseError, RemoteError
from ssoflow.exceptions import (
    ApiError,
    CacheError,
    VerificationPromptError,
    VerificationPromptTimeout,
)
from ssoflow.flow import SsoFlow
from ssoflow.models import BearerToken, SessionCredentials, SsoConfig, utc_now


class StaticCredentials(CredentialProvider):
    def __init__(self, credentials: SessionCredentials) -> None:
        self._credentials = credentials
        self.calls = 0

    async def credentials(self) -> SessionCredentials:
        self.calls += 1
        return self._credentials


@pytest.fixture
def flow_factory(sso_config: SsoConfig, tmp_path: Path, fake_sleep):
    """Build flows sharing one cache directory."""

    def _make(remote, prompt, cache_dir: Path | None = tmp_path / "cache") -> SsoFlow:
        return SsoFlow(
            sso_config, prompt, cache=ExpiryCache(cache_dir), remote=remote, sleep=fake_sleep
        )

    return _make


def _authenticate(flow: SsoFlow):
    return asyncio.run(flow.authenticate())


# ------------------------------------------------------------------ #
# Happy path and caching
# ------------------------------------------------------------------ #


class TestAuthenticate:
    def test_full_flow(self, flow_factory, fake_remote, recording_prompt) -> None:
        credentials = _authenticate(flow_factory(fake_remote, recording_prompt))

        assert credentials.access_key_id == "ASIAEXAMPLE"
        assert fake_remote.calls == [
            "register_client",
            "start_device_authorization",
            "create_token",
            "create_token",
            "get_role_credentials",
        ]
        assert len(recording_prompt.urls) == 1

    def test_writes_three_cache_files(
        self, flow_factory, fake_remote, recording_prompt, sso_config, tmp_path: Path
    ) -> None:
        _authenticate(flow_factory(fake_remote, recording_prompt))

        fingerprint = sso_config.fingerprint()
        names = sorted(p.name for p in (tmp_path / "cache").iterdir())
        assert names == [
            f"client-{fingerprint}.json",
            f"credentials-{fingerprint}.json",
            f"token-{fingerprint}.json",
        ]

    def test_second_run_is_served_from_cache(
        self, flow_factory, make_remote, make_prompt
    ) -> None:
        first = make_remote()
        _authenticate(flow_factory(first, make_prompt()))

        second = make_remote()
        prompt = make_prompt()
        credentials = _authenticate(flow_factory(second, prompt))

        assert credentials.access_key_id == "ASIAEXAMPLE"
        assert second.calls == []
        assert prompt.urls == []

    def test_cached_token_skips_prompt(
        self, flow_factory, make_remote, make_prompt, sso_config, tmp_path: Path
    ) -> None:
        """Expired credentials with a valid token re-fetch without prompting."""
        _authenticate(flow_factory(make_remote(), make_prompt()))

        path = tmp_path / "cache" / f"credentials-{sso_config.fingerprint()}.json"
        data = json.loads(path.read_text())
        data["expires_at"] = (utc_now() - timedelta(minutes=5)).isoformat()
        path.write_text(json.dumps(data))

        remote = make_remote()
        prompt = make_prompt()
        _authenticate(flow_factory(remote, prompt))

        assert remote.calls == ["get_role_credentials"]
        assert prompt.urls == []

    def test_client_registration_is_reused(
        self, flow_factory, make_remote, make_prompt, sso_config, tmp_path: Path
    ) -> None:
        _authenticate(flow_factory(make_remote(), make_prompt()))
        fingerprint = sso_config.fingerprint()
        (tmp_path / "cache" / f"token-{fingerprint}.json").unlink()
        (tmp_path / "cache" / f"credentials-{fingerprint}.json").unlink()

        remote = make_remote()
        _authenticate(flow_factory(remote, make_prompt()))

        assert "register_client" not in remote.calls
        assert "create_token" in remote.calls

    def test_disabled_cache_always_calls_remote(self, flow_factory, make_remote, make_prompt) -> None:
        remote = make_remote()
        flow = flow_factory(remote, make_prompt(), cache_dir=None)
        _authenticate(flow)
        _authenticate(flow)
        assert remote.calls.count("register_client") == 2

    def test_registers_with_versioned_client_name(
        self, flow_factory, recording_prompt, make_remote
    ) -> None:
        names: list[str] = []
        remote = make_remote()
        original = remote.register_client

        async def register(client_name: str):
            names.append(client_name)
            return await original(client_name)

        remote.register_client = register
        _authenticate(flow_factory(remote, recording_prompt))
        assert names == [CLIENT_NAME]
        assert CLIENT_NAME.startswith("ssoflow@")

    def test_credentials_alias(self, flow_factory, fake_remote, recording_prompt) -> None:
        flow = flow_factory(fake_remote, recording_prompt)
        assert asyncio.run(flow.credentials()).access_key_id == "ASIAEXAMPLE"


# ------------------------------------------------------------------ #
# Error mapping
# ------------------------------------------------------------------ #


class TestErrors:
    def test_register_failure_is_api_error(self, flow_factory, make_remote, make_prompt) -> None:
        remote = make_remote()
        remote.register_error = RemoteError("RegisterClient failed with status 500")
        with pytest.raises(ApiError, match="API error: RegisterClient failed"):
            _authenticate(flow_factory(remote, make_prompt()))

    def test_credentials_failure_is_api_error(
        self, flow_factory, make_remote, make_prompt
    ) -> None:
        remote = make_remote()
        remote.credentials_error = InvalidResponseError(
            "invalid GetRoleCredentials response: missing roleCredentials"
        )
        with pytest.raises(ApiError, match="missing roleCredentials"):
            _authenticate(flow_factory(remote, make_prompt()))

    def test_malformed_http_response_is_api_error(
        self, flow_factory, make_prompt, session_credentials
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"clientId": 5, "clientSecret": "s", "clientSecretExpiresAt": 1798804800},
            )

        remote = HttpSsoClient(
            "eu-west-1", http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        flow = flow_factory(remote, make_prompt())
        with pytest.raises(ApiError, match="invalid RegisterClient response"):
            _authenticate(flow)

        fallback = StaticCredentials(session_credentials)
        chain = ChainProvider().push(flow_factory(remote, make_prompt())).push(fallback)
        with pytest.raises(ApiError):
            asyncio.run(chain.credentials())
        assert fallback.calls == 0

    def test_prompt_failure(self, flow_factory, make_remote, make_prompt) -> None:
        remote = make_remote()
        with pytest.raises(VerificationPromptError):
            _authenticate(flow_factory(remote, make_prompt(error=OSError("no tty"))))
        assert "create_token" not in remote.calls

    def test_timeout(self, flow_factory, make_remote, make_prompt) -> None:
        remote = make_remote(token_errors=[ExpiredTokenError("expired")])
        with pytest.raises(VerificationPromptTimeout):
            _authenticate(flow_factory(remote, make_prompt()))
        assert "get_role_credentials" not in remote.calls

    def test_corrupt_token_cache_is_cache_error(
        self, flow_factory, make_remote, make_prompt, sso_config, tmp_path: Path
    ) -> None:
        cache_dir = tmp_path / "cache"
        cache_dir.mkdir()
        (cache_dir / f"token-{sso_config.fingerprint()}.json").write_text("{")

        remote = make_remote()
        prompt = make_prompt()
        with pytest.raises(CacheError, match="corrupt cache file"):
            _authenticate(flow_factory(remote, prompt))
        assert prompt.urls == []
        assert "create_token" not in remote.calls

    def test_failed_token_is_not_cached(
        self, flow_factory, make_remote, make_prompt, sso_config, tmp_path: Path
    ) -> None:
        remote = make_remote(token_errors=[ExpiredTokenError("expired")])
        with pytest.raises(VerificationPromptTimeout):
            _authenticate(flow_factory(remote, make_prompt()))
        assert not (tmp_path / "cache" / f"token-{sso_config.fingerprint()}.json").exists()


# ------------------------------------------------------------------ #
# Lifecycle and repr
# ------------------------------------------------------------------ #


class TestLifecycle:
    def test_context_manager_closes_remote(self, flow_factory, fake_remote, recording_prompt) -> None:
        async def run() -> None:
            async with flow_factory(fake_remote, recording_prompt) as flow:
                await flow.authenticate()

        asyncio.run(run())
        assert fake_remote.closed

    def test_repr_has_no_secrets(self, flow_factory, fake_remote, recording_prompt) -> None:
        flow = flow_factory(fake_remote, recording_prompt)
        credentials = _authenticate(flow)
        text = repr(flow) + repr(credentials)
        assert "secret-key" not in text
        assert "session-token" not in text
        assert "ASIAEXAMPLE" in repr(credentials)

    def test_default_remote_is_http_client(self, sso_config, recording_prompt) -> None:
        from ssoflow.client import HttpSsoClient

        flow = SsoFlow(sso_config, recording_prompt)
        assert "HttpSsoClient" in repr(flow)
        assert not flow.cache.enabled
        asyncio.run(flow.aclose())
        assert isinstance(flow._remote, HttpSsoClient)


def test_bearer_token_repr_hides_access_token() -> None:
    token = BearerToken(access_token="very-secret", expires_at=utc_now())
    assert "very-secret" not in repr(token)

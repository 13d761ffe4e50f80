"""Tests for the shared Pydantic models."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from ssoflow.models import (
    BearerToken,
    ClientRegistration,
    SessionCredentials,
    SsoConfig,
    VerificationChallenge,
)

EXPIRY = datetime(2026, 1, 1, 13, 0, 0, tzinfo=timezone.utc)


# ------------------------------------------------------------------ #
# SsoConfig
# ------------------------------------------------------------------ #


class TestSsoConfig:
    @pytest.mark.parametrize("field", ["region", "start_url", "account_id", "role_name"])
    def test_empty_fields_are_rejected(self, sso_config: SsoConfig, field: str) -> None:
        values = sso_config.model_dump()
        values[field] = ""
        with pytest.raises(ValidationError):
            SsoConfig(**values)

    def test_is_frozen(self, sso_config: SsoConfig) -> None:
        with pytest.raises(ValidationError):
            sso_config.region = "us-east-1"  # type: ignore[misc]


# ------------------------------------------------------------------ #
# Timestamps
# ------------------------------------------------------------------ #


class TestTimestamps:
    def test_naive_timestamp_is_treated_as_utc(self) -> None:
        token = BearerToken(access_token="t", expires_at=datetime(2026, 1, 1, 13, 0, 0))
        assert token.expires_at == EXPIRY
        assert token.expires_at.tzinfo is not None

    def test_offset_timestamp_is_normalised(self) -> None:
        offset = timezone(timedelta(hours=2))
        token = BearerToken(
            access_token="t", expires_at=datetime(2026, 1, 1, 15, 0, 0, tzinfo=offset)
        )
        assert token.expires_at == EXPIRY
        assert token.expires_at.utcoffset() == timedelta(0)

    def test_json_round_trip_keeps_secrets(self, session_credentials: SessionCredentials) -> None:
        """Cache files must contain everything needed to rebuild the value."""
        restored = SessionCredentials.model_validate_json(session_credentials.model_dump_json())
        assert restored == session_credentials

    def test_registration_expiry_is_secret_expiry(self, registration: ClientRegistration) -> None:
        assert registration.expires_at == registration.client_secret_expires_at


# ------------------------------------------------------------------ #
# Secrets in repr
# ------------------------------------------------------------------ #


class TestRepr:
    def test_session_credentials(self, session_credentials: SessionCredentials) -> None:
        text = repr(session_credentials) + str(session_credentials)
        assert "ASIAEXAMPLE" in text
        assert "secret-key" not in text
        assert "session-token" not in text

    def test_client_registration(self, registration: ClientRegistration) -> None:
        assert "client-secret" not in repr(registration)

    def test_challenge_hides_device_code(self) -> None:
        challenge = VerificationChallenge(
            device_code="device-secret",
            user_code="ABCD",
            verification_url="https://device.example/?user_code=ABCD",
            poll_interval=5,
            expires_at=EXPIRY,
        )
        assert "device-secret" not in repr(challenge)
        assert "ABCD" in repr(challenge)

    def test_poll_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            VerificationChallenge(
                device_code="d",
                user_code="u",
                verification_url="https://x",
                poll_interval=0,
                expires_at=EXPIRY,
            )


# ------------------------------------------------------------------ #
# Renderings
# ------------------------------------------------------------------ #


class TestRenderings:
    def test_credential_process(self, session_credentials: SessionCredentials) -> None:
        assert session_credentials.to_credential_process() == {
            "Version": 1,
            "AccessKeyId": "ASIAEXAMPLE",
            "SecretAccessKey": "secret-key",
            "SessionToken": "session-token",
            "Expiration": "2026-01-01T13:00:00Z",
        }

    def test_env(self, session_credentials: SessionCredentials) -> None:
        assert session_credentials.to_env() == {
            "AWS_ACCESS_KEY_ID": "ASIAEXAMPLE",
            "AWS_SECRET_ACCESS_KEY": "secret-key",
            "AWS_SESSION_TOKEN": "session-token",
            "AWS_CREDENTIAL_EXPIRATION": "2026-01-01T13:00:00Z",
        }

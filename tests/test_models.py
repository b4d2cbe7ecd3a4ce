"""Tests for beecli.models -- timestamps, pairing wire union, identity profile."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from beecli.models import (
    CompletedAttempt,
    EnvironmentConfig,
    ExpiredAttempt,
    IdentityProfile,
    PairingState,
    PendingAttempt,
    pairing_attempt_adapter,
    parse_timestamp,
)


class TestParseTimestamp:
    def test_trailing_z(self) -> None:
        assert parse_timestamp("2026-01-01T12:05:00Z") == datetime(
            2026, 1, 1, 12, 5, tzinfo=timezone.utc
        )

    def test_offset_preserved(self) -> None:
        parsed = parse_timestamp("2026-01-01T14:05:00+02:00")
        assert parsed is not None
        assert parsed.utcoffset() == timedelta(hours=2)

    def test_naive_assumed_utc(self) -> None:
        parsed = parse_timestamp("2026-01-01T12:05:00")
        assert parsed is not None
        assert parsed.tzinfo == timezone.utc

    def test_nanosecond_fraction(self) -> None:
        parsed = parse_timestamp("2020-01-01T12:00:00.123456789+00:00")
        assert parsed is not None
        assert parsed.replace(microsecond=0) == datetime(2020, 1, 1, 12, tzinfo=timezone.utc)
        assert parsed.microsecond >= 123456

    @pytest.mark.parametrize("value", [None, "", "soon", "2026-13-45"])
    def test_missing_or_garbage(self, value) -> None:
        assert parse_timestamp(value) is None


class TestPairingAttemptUnion:
    def test_pending(self) -> None:
        attempt = pairing_attempt_adapter.validate_python(
            {"status": "pending", "requestId": "r1", "expiresAt": "2026-01-01T12:05:00Z"}
        )
        assert isinstance(attempt, PendingAttempt)
        assert attempt.request_id == "r1"
        assert attempt.expires_at == "2026-01-01T12:05:00Z"

    def test_completed(self) -> None:
        attempt = pairing_attempt_adapter.validate_python(
            {"status": "completed", "requestId": "r1", "result": {"encryptedToken": "abc"}}
        )
        assert isinstance(attempt, CompletedAttempt)
        assert attempt.encrypted_token == "abc"

    def test_expired(self) -> None:
        attempt = pairing_attempt_adapter.validate_python(
            {"status": "expired", "requestId": "r1"}
        )
        assert isinstance(attempt, ExpiredAttempt)

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            pairing_attempt_adapter.validate_python({"status": "approved", "requestId": "r1"})

    def test_completed_without_token_rejected(self) -> None:
        with pytest.raises(ValidationError):
            pairing_attempt_adapter.validate_python(
                {"status": "completed", "requestId": "r1", "result": {}}
            )

    def test_pending_without_expiry_rejected(self) -> None:
        with pytest.raises(ValidationError):
            pairing_attempt_adapter.validate_python({"status": "pending", "requestId": "r1"})


class TestPairingState:
    def _state(self, expires_at: str) -> PairingState:
        return PairingState(
            app_id="app",
            public_key="pk",
            secret_key="sk",
            request_id="r1",
            pairing_url="https://bee.test/connect/r1",
            expires_at=expires_at,
        )

    def test_camel_case_round_trip(self) -> None:
        state = self._state("2026-01-01T12:05:00Z")
        dumped = state.model_dump(by_alias=True)
        assert set(dumped) == {
            "appId",
            "publicKey",
            "secretKey",
            "requestId",
            "pairingUrl",
            "expiresAt",
        }
        assert PairingState.model_validate(dumped) == state

    def test_secret_key_hidden_from_repr(self) -> None:
        text = repr(self._state("2026-01-01T12:05:00Z"))
        assert "secret_key" not in text
        assert "'sk'" not in text

    def test_expiry(self) -> None:
        state = self._state("2026-01-01T12:05:00Z")
        assert not state.is_expired(datetime(2026, 1, 1, 12, 4, 59, tzinfo=timezone.utc))
        assert state.is_expired(datetime(2026, 1, 1, 12, 5, tzinfo=timezone.utc))

    def test_nanosecond_expiry_in_the_past(self) -> None:
        state = self._state("2020-01-01T12:00:00.123456789Z")
        assert state.is_expired(datetime(2026, 1, 1, tzinfo=timezone.utc))

    def test_unparsable_expiry_never_expired(self) -> None:
        state = self._state("whenever")
        assert not state.is_expired(datetime(2099, 1, 1, tzinfo=timezone.utc))


class TestIdentityProfile:
    def test_full_name(self) -> None:
        profile = IdentityProfile.model_validate(
            {"id": 42, "first_name": "Ada", "last_name": "Lovelace"}
        )
        assert profile.display_name == "Ada Lovelace"

    def test_non_string_last_name_ignored(self) -> None:
        profile = IdentityProfile.model_validate({"id": 42, "first_name": "Ada", "last_name": 3})
        assert profile.last_name is None
        assert profile.display_name == "Ada"

    def test_extra_fields_kept(self) -> None:
        profile = IdentityProfile.model_validate(
            {"id": 42, "first_name": "Ada", "timezone": "Europe/London"}
        )
        assert profile.model_dump()["timezone"] == "Europe/London"

    @pytest.mark.parametrize(
        "payload",
        [
            {"first_name": "Ada"},
            {"id": "42", "first_name": "Ada"},
            {"id": 42},
            {"id": 42, "first_name": 7},
        ],
    )
    def test_invalid_shapes(self, payload) -> None:
        with pytest.raises(ValidationError):
            IdentityProfile.model_validate(payload)


class TestEnvironmentConfig:
    def test_pairing_url_for(self, environment: EnvironmentConfig) -> None:
        assert environment.pairing_url_for("r1") == "https://bee.test/connect/r1"

    def test_requires_a_pairing_url(self) -> None:
        with pytest.raises(ValidationError):
            EnvironmentConfig(
                name="x", label="x", api_url="https://a", pairing_urls=[], app_id="a"
            )

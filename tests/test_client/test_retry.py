"""Tests for the retry policy."""

from __future__ import annotations

import pytest

from beecli.client.retry import RetryPolicy
from beecli.models import PairingSettings


class TestRetryPolicy:
    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.max_attempts == 10
        assert policy.base_delay == 1.0
        assert policy.max_delay == 30.0

    @pytest.mark.parametrize(
        ("attempt", "delay"),
        [(1, 1.0), (2, 2.0), (3, 4.0), (4, 8.0), (5, 16.0), (6, 30.0), (9, 30.0)],
    )
    def test_exponential_backoff_with_cap(self, attempt: int, delay: float) -> None:
        assert RetryPolicy().delay_for(attempt) == delay

    def test_from_settings(self) -> None:
        settings = PairingSettings(max_attempts=3, base_delay=0.5, max_delay=2.0)
        policy = RetryPolicy.from_settings(settings)
        assert policy == RetryPolicy(max_attempts=3, base_delay=0.5, max_delay=2.0)
        assert policy.delay_for(4) == 2.0

"""
Tests for the fixed-delay retry policy.

Covers:
- should_retry boundary at max_attempts
- Constant delay
- Construction from settings
- Rejection of invalid limits
"""

import pytest

from billpay.config.settings import Settings
from billpay.services.payment_runner import RetryPolicy


class TestShouldRetry:
    """Test the attempt boundary."""

    @pytest.mark.parametrize("attempt", [0, 1, 2])
    def test_retry_allowed_below_max(self, attempt):
        policy = RetryPolicy(max_attempts=3, base_delay=5)

        assert policy.should_retry(attempt) is True

    @pytest.mark.parametrize("attempt", [3, 4, 100])
    def test_retry_refused_at_or_above_max(self, attempt):
        policy = RetryPolicy(max_attempts=3, base_delay=5)

        assert policy.should_retry(attempt) is False

    def test_single_attempt_policy(self):
        """max_attempts=1 allows the first call only."""
        policy = RetryPolicy(max_attempts=1, base_delay=0)

        assert policy.should_retry(0) is True
        assert policy.should_retry(1) is False


class TestDelay:
    """Test the inter-attempt delay."""

    def test_delay_is_constant(self):
        policy = RetryPolicy(max_attempts=5, base_delay=2.5)

        delays = {policy.delay_before_next_attempt() for _ in range(4)}

        assert delays == {2.5}

    def test_from_settings_converts_milliseconds(self):
        config = Settings(_env_file=None, retry_attempts=4, retry_delay_ms=1500)

        policy = RetryPolicy.from_settings(config)

        assert policy.max_attempts == 4
        assert policy.base_delay == 1.5


class TestValidation:
    """Test invalid construction."""

    def test_zero_attempts_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0, base_delay=1)

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=3, base_delay=-1)

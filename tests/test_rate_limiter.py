"""Tests for the sliding window rate limiter."""

import pytest

from code_auditor.errors import RateLimitExceeded
from code_auditor.rate_limiter import SlidingWindowRateLimiter


@pytest.fixture
def limiter(clock):
    return SlidingWindowRateLimiter(max_requests=3, window_seconds=60.0, clock=clock)


class TestCheckAndRecord:
    """Test admission decisions."""

    def test_admits_up_to_ceiling(self, limiter):
        for _ in range(3):
            limiter.check_and_record("alice")

    def test_rejects_request_over_ceiling(self, limiter):
        for _ in range(3):
            limiter.check_and_record("alice")

        with pytest.raises(RateLimitExceeded) as exc_info:
            limiter.check_and_record("alice")

        assert exc_info.value.limit == 3
        assert exc_info.value.window_seconds == 60.0

    def test_admits_again_after_window(self, limiter, clock):
        for _ in range(3):
            limiter.check_and_record("alice")

        clock.advance(60.1)
        limiter.check_and_record("alice")

    def test_window_slides_one_request_at_a_time(self, limiter, clock):
        limiter.check_and_record("alice")
        clock.advance(30)
        limiter.check_and_record("alice")
        limiter.check_and_record("alice")

        # First request expires, the other two are still inside the window
        clock.advance(31)
        limiter.check_and_record("alice")
        with pytest.raises(RateLimitExceeded):
            limiter.check_and_record("alice")

    def test_rejected_attempts_are_not_recorded(self, limiter, clock):
        for _ in range(3):
            limiter.check_and_record("alice")
        for _ in range(5):
            with pytest.raises(RateLimitExceeded):
                limiter.check_and_record("alice")

        clock.advance(60.1)
        assert limiter.remaining("alice") == 3

    def test_clients_are_independent(self, limiter):
        for _ in range(3):
            limiter.check_and_record("alice")

        limiter.check_and_record("bob")
        assert limiter.remaining("bob") == 2


class TestState:
    """Test introspection and reset."""

    def test_size_counts_clients(self, limiter):
        assert limiter.size() == 0
        limiter.check_and_record("alice")
        limiter.check_and_record("bob")
        limiter.check_and_record("bob")
        assert limiter.size() == 2

    def test_unknown_client_has_full_budget(self, limiter):
        assert limiter.remaining("nobody") == 3
        assert limiter.size() == 0

    def test_clear_resets_budgets(self, limiter):
        for _ in range(3):
            limiter.check_and_record("alice")

        limiter.clear()

        assert limiter.size() == 0
        limiter.check_and_record("alice")

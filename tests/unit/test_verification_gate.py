"""
Unit tests for VerificationGate.

Tests with a controllable clock to verify:
- Code generation and single use
- Per-email window rate limiting
- Per-address token buckets
- TTL sweeping
"""

import re

import pytest

from src.domain.exceptions import RateLimited
from src.domain.verification import VerificationGate, generate_code
from tests.helpers import FakeClock


@pytest.fixture
def gate(clock: FakeClock) -> VerificationGate:
    return VerificationGate(clock=clock)


class TestCodeGeneration:
    """Tests for verification code format."""

    def test_code_is_6_digits(self) -> None:
        assert re.match(r"^\d{6}$", generate_code())

    def test_codes_vary(self) -> None:
        """With 20 draws the chance of a single value is 10^-114."""
        assert len({generate_code() for _ in range(20)}) >= 2

    def test_request_code_returns_6_digits(self, gate: VerificationGate) -> None:
        assert re.match(r"^\d{6}$", gate.request_code("user@example.com"))


class TestVerifyCode:
    """Tests for verify_code."""

    def test_correct_code_verifies(self, gate: VerificationGate) -> None:
        code = gate.request_code("user@example.com")
        assert gate.verify_code("user@example.com", code) is True

    def test_code_cannot_be_used_twice(self, gate: VerificationGate) -> None:
        code = gate.request_code("user@example.com")
        assert gate.verify_code("user@example.com", code) is True
        assert gate.verify_code("user@example.com", code) is False

    def test_wrong_code_keeps_entry(self, gate: VerificationGate) -> None:
        """A mismatch leaves the live code usable."""
        code = gate.request_code("user@example.com")
        wrong = f"{(int(code) + 1) % 1_000_000:06d}"

        assert gate.verify_code("user@example.com", wrong) is False
        assert gate.has_pending_code("user@example.com")
        assert gate.verify_code("user@example.com", code) is True

    def test_unknown_email_fails(self, gate: VerificationGate) -> None:
        assert gate.verify_code("nobody@example.com", "123456") is False

    def test_no_lockout_after_many_wrong_guesses(self, gate: VerificationGate) -> None:
        code = gate.request_code("user@example.com")
        wrong = f"{(int(code) + 1) % 1_000_000:06d}"
        for _ in range(20):
            gate.verify_code("user@example.com", wrong)
        assert gate.verify_code("user@example.com", code) is True

    def test_new_request_overwrites_previous_code(self, gate: VerificationGate) -> None:
        first = gate.request_code("user@example.com")
        second = gate.request_code("user@example.com")

        # Only the latest code is live
        assert gate.verify_code("user@example.com", first) is (first == second)
        if first != second:
            assert gate.verify_code("user@example.com", second) is True

    def test_email_is_normalized(self, gate: VerificationGate) -> None:
        code = gate.request_code("  User@Example.COM ")
        assert gate.verify_code("user@example.com", code) is True


class TestEmailRateLimit:
    """Tests for the 3-per-3-minutes email limiter."""

    def test_fourth_request_in_window_is_rate_limited(self, gate: VerificationGate) -> None:
        for _ in range(3):
            gate.request_code("user@example.com")

        with pytest.raises(RateLimited):
            gate.request_code("user@example.com")

    def test_fourth_request_after_window_succeeds(
        self, gate: VerificationGate, clock: FakeClock
    ) -> None:
        for _ in range(3):
            gate.request_code("user@example.com")

        clock.advance(181)

        assert re.match(r"^\d{6}$", gate.request_code("user@example.com"))

    def test_window_is_per_email(self, gate: VerificationGate) -> None:
        for _ in range(3):
            gate.request_code("first@example.com")

        gate.request_code("second@example.com")

    def test_rate_limited_request_keeps_existing_code(self, gate: VerificationGate) -> None:
        for _ in range(2):
            gate.request_code("user@example.com")
        code = gate.request_code("user@example.com")

        with pytest.raises(RateLimited):
            gate.request_code("user@example.com")

        assert gate.verify_code("user@example.com", code) is True


class TestAddressTokenBucket:
    """Tests for allow(): 1 token per second, burst of 5."""

    def test_burst_of_five(self, gate: VerificationGate) -> None:
        results = [gate.allow("10.0.0.1") for _ in range(6)]
        assert results == [True, True, True, True, True, False]

    def test_refills_one_token_per_second(
        self, gate: VerificationGate, clock: FakeClock
    ) -> None:
        for _ in range(5):
            gate.allow("10.0.0.1")
        assert gate.allow("10.0.0.1") is False

        clock.advance(1.0)

        assert gate.allow("10.0.0.1") is True
        assert gate.allow("10.0.0.1") is False

    def test_refill_is_capped_at_burst(self, gate: VerificationGate, clock: FakeClock) -> None:
        gate.allow("10.0.0.1")
        clock.advance(60)
        results = [gate.allow("10.0.0.1") for _ in range(6)]
        assert results.count(True) == 5

    def test_buckets_are_per_address(self, gate: VerificationGate) -> None:
        for _ in range(5):
            gate.allow("10.0.0.1")
        assert gate.allow("10.0.0.1") is False
        assert gate.allow("10.0.0.2") is True


class TestSweep:
    """Tests for sweep()."""

    def test_code_survives_before_ttl(self, gate: VerificationGate, clock: FakeClock) -> None:
        code = gate.request_code("user@example.com")
        clock.advance(14 * 60)

        gate.sweep()

        assert gate.verify_code("user@example.com", code) is True

    def test_code_expires_after_ttl(self, gate: VerificationGate, clock: FakeClock) -> None:
        code = gate.request_code("user@example.com")
        clock.advance(15 * 60 + 1)

        gate.sweep()

        assert gate.verify_code("user@example.com", code) is False

    def test_sweep_removes_all_expired_entries(
        self, gate: VerificationGate, clock: FakeClock
    ) -> None:
        gate.request_code("user@example.com")  # code + rate limit entry
        gate.allow("10.0.0.1")  # bucket
        clock.advance(15 * 60 + 1)

        assert gate.sweep() == 3

    def test_sweep_is_idempotent(self, gate: VerificationGate, clock: FakeClock) -> None:
        gate.request_code("user@example.com")
        clock.advance(15 * 60 + 1)

        gate.sweep()

        assert gate.sweep() == 0

    def test_evicted_bucket_starts_full(self, gate: VerificationGate, clock: FakeClock) -> None:
        for _ in range(5):
            gate.allow("10.0.0.1")
        clock.advance(15 * 60 + 1)
        gate.sweep()

        results = [gate.allow("10.0.0.1") for _ in range(6)]
        assert results == [True, True, True, True, True, False]

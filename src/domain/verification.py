"""
Verification gate - email verification codes and abuse rate limiting.

The gate owns three in-memory maps, each guarded by its own exclusive
``threading.Lock``; lookups and writes take the same lock, so readers
of one map never run concurrently:

- verification codes, one live 6-digit code per email;
- the per-email window limiter (max attempts per window);
- the per-address token buckets.

No lock is ever held while calling out of this module. ``sweep()``
drops entries older than the TTL from all three maps and can run on its
own schedule.
"""

import logging
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from .exceptions import RateLimited

logger = logging.getLogger(__name__)

CODE_TTL_SECONDS = 15 * 60
EMAIL_WINDOW_SECONDS = 3 * 60
EMAIL_MAX_ATTEMPTS = 3
IP_RATE_PER_SECOND = 1.0
IP_BURST = 5


@dataclass
class VerificationCodeEntry:
    code: str
    created_at: float


@dataclass
class RateLimitEntry:
    count: int
    window_start: float


@dataclass
class TokenBucket:
    """Token bucket refilled continuously at ``rate`` tokens per second."""

    rate: float
    burst: int
    tokens: float
    updated_at: float

    def allow(self, now: float) -> bool:
        elapsed = max(0.0, now - self.updated_at)
        self.tokens = min(float(self.burst), self.tokens + elapsed * self.rate)
        self.updated_at = now
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return True
        return False


def generate_code() -> str:
    """
    Generate a cryptographically secure 6-digit verification code.

    Returns string to preserve leading zeros.
    """
    return f"{secrets.randbelow(1_000_000):06d}"


class VerificationGate:
    """
    Gatekeeper for who may request, verify and register.

    One instance lives for the whole application and is shared by
    concurrent request handlers.
    """

    def __init__(
        self,
        *,
        code_ttl_seconds: float = CODE_TTL_SECONDS,
        email_window_seconds: float = EMAIL_WINDOW_SECONDS,
        email_max_attempts: int = EMAIL_MAX_ATTEMPTS,
        ip_rate_per_second: float = IP_RATE_PER_SECOND,
        ip_burst: int = IP_BURST,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._code_ttl = code_ttl_seconds
        self._email_window = email_window_seconds
        self._email_max_attempts = email_max_attempts
        self._ip_rate = ip_rate_per_second
        self._ip_burst = ip_burst
        self._clock = clock

        self._codes: dict[str, VerificationCodeEntry] = {}
        self._codes_lock = threading.Lock()
        self._email_limits: dict[str, RateLimitEntry] = {}
        self._email_limits_lock = threading.Lock()
        self._buckets: dict[str, TokenBucket] = {}
        self._buckets_lock = threading.Lock()

    def request_code(self, email: str) -> str:
        """
        Issue a fresh verification code for an email.

        Counts against the per-email window limiter. A new code replaces
        any code previously issued for the same email.

        Raises:
            RateLimited: If the email already used up its window
        """
        email = self._normalize_email(email)
        self._register_email_attempt(email)

        code = generate_code()
        with self._codes_lock:
            self._codes[email] = VerificationCodeEntry(code=code, created_at=self._clock())
        return code

    def verify_code(self, email: str, code: str) -> bool:
        """
        Check a code and consume it on success.

        A mismatch leaves the live code in place so the user can retry.
        """
        email = self._normalize_email(email)
        with self._codes_lock:
            entry = self._codes.get(email)
            if entry is None or not secrets.compare_digest(entry.code.encode(), code.encode()):
                return False
            del self._codes[email]
            return True

    def allow(self, source_address: str) -> bool:
        """Take one token from the bucket of a network address."""
        now = self._clock()
        with self._buckets_lock:
            bucket = self._buckets.get(source_address)
            if bucket is None:
                bucket = TokenBucket(
                    rate=self._ip_rate,
                    burst=self._ip_burst,
                    tokens=float(self._ip_burst),
                    updated_at=now,
                )
                self._buckets[source_address] = bucket
            return bucket.allow(now)

    def sweep(self) -> int:
        """
        Remove codes, rate-limit windows and idle buckets older than the TTL.

        An address bucket idle for the TTL has refilled completely, so
        dropping it does not change what ``allow()`` answers next.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        removed = 0

        with self._email_limits_lock:
            stale = [e for e, w in self._email_limits.items() if now - w.window_start > self._code_ttl]
            for email in stale:
                del self._email_limits[email]
                removed += 1

        with self._codes_lock:
            stale = [e for e, c in self._codes.items() if now - c.created_at > self._code_ttl]
            for email in stale:
                del self._codes[email]
                removed += 1

        with self._buckets_lock:
            stale = [a for a, b in self._buckets.items() if now - b.updated_at > self._code_ttl]
            for address in stale:
                del self._buckets[address]
                removed += 1

        if removed:
            logger.debug("Swept %d expired verification entries", removed)
        return removed

    def has_pending_code(self, email: str) -> bool:
        email = self._normalize_email(email)
        with self._codes_lock:
            return email in self._codes

    def _register_email_attempt(self, email: str) -> None:
        now = self._clock()
        with self._email_limits_lock:
            entry = self._email_limits.get(email)
            if entry is None or now - entry.window_start > self._email_window:
                self._email_limits[email] = RateLimitEntry(count=1, window_start=now)
                return
            if entry.count >= self._email_max_attempts:
                raise RateLimited(email)
            entry.count += 1

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()

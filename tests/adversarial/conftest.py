"""
Shared fixtures for adversarial tests.

Attacks are simulated against the in-process verification gate and the
API with in-memory adapters, so no external services are needed.
"""

import pytest

from src.domain.verification import VerificationGate
from tests.helpers import FakeClock


@pytest.fixture
def gate(clock: FakeClock) -> VerificationGate:
    """Gate with production limits and a frozen clock."""
    return VerificationGate(clock=clock)

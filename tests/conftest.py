"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- P-256 signing keys and key files
- A controllable clock for the verification gate
- An in-memory registration store
- The reference registration form
"""

from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from tests.helpers import FakeClock, MemoryRegistrationStore, private_key_hex


@pytest.fixture
def private_key() -> ec.EllipticCurvePrivateKey:
    """Fresh P-256 private key."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def key_file(tmp_path: Path, private_key: ec.EllipticCurvePrivateKey) -> Path:
    """Raw private key file in the deployed format: 0x-prefixed hex with newline."""
    path = tmp_path / "private_key.txt"
    path.write_text(f"0x{private_key_hex(private_key)}\n")
    return path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryRegistrationStore:
    return MemoryRegistrationStore()


@pytest.fixture
def registration_payload() -> dict[str, str]:
    """Registration form as posted by the web client."""
    return {
        "firstName": "Ana",
        "lastName": "Ruiz",
        "companyName": "Acme",
        "country": "ES",
        "vatId": "B12345678",
        "email": "ana@example.com",
        "website": "",
    }

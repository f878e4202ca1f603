"""Test doubles shared across the unit, integration and adversarial suites."""

import copy

from cryptography.hazmat.primitives.asymmetric import ec

from src.domain.exceptions import DuplicateRegistration
from src.domain.ports import Registration


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryRegistrationStore:
    """
    In-memory RegistrationStore keyed by (email, vat_id).

    Amends in place on conflict unless ``strict`` is set. Keeps a copy of
    every status update for assertions.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict
        self.records: dict[tuple[str, str], Registration] = {}
        self.status_updates: list[Registration] = []

    def save_registration(self, registration: Registration) -> None:
        key = (registration.email, registration.vat_id)
        if self.strict and key in self.records:
            raise DuplicateRegistration(f"{key} already registered")
        self.records[key] = copy.copy(registration)

    def update_registration_status(self, registration: Registration) -> None:
        self.status_updates.append(copy.copy(registration))
        self.records[(registration.email, registration.vat_id)] = copy.copy(registration)

    def get_registration(self, vat_id: str, email: str) -> Registration | None:
        return self.records.get((email, vat_id))


def private_key_hex(private_key: ec.EllipticCurvePrivateKey) -> str:
    return private_key.private_numbers().private_value.to_bytes(32, "big").hex()

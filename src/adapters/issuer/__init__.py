"""Issuer adapters - did:key identity, Verifier token exchange, issuance client."""

from .client import IssuanceClient
from .did_key import KeyIdentity, derive_identifier

__all__ = ["IssuanceClient", "KeyIdentity", "derive_identifier"]

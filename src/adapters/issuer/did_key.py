"""
did:key identity for a P-256 signing key.

The public key is compressed to 33 bytes (0x02/0x03 parity prefix over X),
prefixed with the multicodec varint for p256-pub (0x80 0x24), base58btc
encoded and rendered as ``did:key:z<encoded>``.

Loading a key always re-derives its did:key and compares it with the
configured one, so a key file deployed for the wrong identity stops the
service at startup.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import base58
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from src.domain.exceptions import IdentityMismatch, KeyIdentityError

logger = logging.getLogger(__name__)

P256_MULTICODEC_PREFIX = bytes([0x80, 0x24])
DID_KEY_PREFIX = "did:key:z"


def derive_identifier(public_key_bytes: bytes) -> str:
    """
    Derive the did:key for an uncompressed SEC1 P-256 public key.

    Args:
        public_key_bytes: 65 bytes, 0x04 || X (32 bytes) || Y (32 bytes)

    Returns:
        did:key identifier
    """
    if len(public_key_bytes) != 65 or public_key_bytes[0] != 0x04:
        raise ValueError("expected a 65-byte uncompressed P-256 public key")

    x_bytes = public_key_bytes[1:33]
    prefix = 0x03 if public_key_bytes[64] % 2 else 0x02
    compressed = bytes([prefix]) + x_bytes

    return DID_KEY_PREFIX + base58.b58encode(P256_MULTICODEC_PREFIX + compressed).decode("ascii")


def public_key_identifier(public_key: ec.EllipticCurvePublicKey) -> str:
    uncompressed = public_key.public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)
    return derive_identifier(uncompressed)


def parse_raw_private_key(raw: str) -> ec.EllipticCurvePrivateKey:
    """
    Parse a hex-encoded P-256 private scalar, optionally 0x-prefixed.

    Raises:
        KeyIdentityError: If the text is not a valid P-256 scalar
    """
    hex_key = raw.strip()
    if hex_key[:2] in ("0x", "0X"):
        hex_key = hex_key[2:]

    try:
        scalar = int.from_bytes(bytes.fromhex(hex_key), "big")
        return ec.derive_private_key(scalar, ec.SECP256R1())
    except ValueError as exc:
        raise KeyIdentityError(f"invalid P-256 private key: {exc}") from exc


@dataclass(frozen=True)
class KeyIdentity:
    """A P-256 private key together with its verified did:key."""

    private_key: ec.EllipticCurvePrivateKey
    identifier: str

    @classmethod
    def from_private_key(cls, private_key: ec.EllipticCurvePrivateKey) -> "KeyIdentity":
        return cls(private_key=private_key, identifier=public_key_identifier(private_key.public_key()))

    @classmethod
    def load_and_verify(cls, key_file: str | Path, expected_identifier: str) -> "KeyIdentity":
        """
        Load a raw private key file and check it against the configured did:key.

        Args:
            key_file: Path to a file holding the hex private scalar
            expected_identifier: did:key the key is supposed to belong to

        Raises:
            KeyIdentityError: If the file cannot be read or parsed
            IdentityMismatch: If the key derives a different did:key
        """
        try:
            raw = Path(key_file).read_text()
        except OSError as exc:
            raise KeyIdentityError(f"cannot read private key file {key_file}: {exc}") from exc

        identity = cls.from_private_key(parse_raw_private_key(raw))
        if identity.identifier != expected_identifier:
            raise IdentityMismatch(
                "the private key does not correspond to the did:key in the configuration"
            )

        logger.info("Loaded signing key for %s", identity.identifier)
        return identity

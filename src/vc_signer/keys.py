"""
EC P-256 key material handling.

Boundary formats:
- Public keys: Base64 of SPKI DER
- Private keys: Base64 of unencrypted PKCS8 DER
- Curve: P-256 (secp256r1) only
"""

from __future__ import annotations

import base64
import binascii
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

LOGGER = logging.getLogger(__name__)

CURVE = ec.SECP256R1
CURVE_NAME = "P-256"
JWK_COORDINATE_SIZE = 32

SigningKey = Union[ec.EllipticCurvePrivateKey, str]
VerificationKey = Union[ec.EllipticCurvePublicKey, str]


class KeyFormatError(Exception):
    """Raised when key material is malformed or on the wrong curve."""


class KeyRole(Enum):
    """What a resolved key will be used for."""

    SIGNING = "signing"
    VERIFICATION = "verification"


@dataclass(frozen=True)
class KeyPair:
    """Base64 DER encoded key pair."""

    public_key: str
    private_key: str

    def to_dict(self) -> dict[str, str]:
        return {"publicKey": self.public_key, "privateKey": self.private_key}


@dataclass(frozen=True)
class Wallet:
    """A key pair bound to a self-issued identifier."""

    did: str
    public_key: str
    private_key: str

    def to_dict(self) -> dict[str, str]:
        return {
            "did": self.did,
            "publicKey": self.public_key,
            "privateKey": self.private_key,
        }


def _check_curve(key: ec.EllipticCurvePrivateKey | ec.EllipticCurvePublicKey) -> None:
    if not isinstance(key.curve, CURVE):
        raise KeyFormatError(
            f"Unsupported curve {key.curve.name}, expected {CURVE_NAME} (secp256r1)"
        )


def _decode_base64(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise KeyFormatError(f"Key is not valid Base64: {e}") from e


def _is_pkcs8(der: bytes) -> bool:
    """Whether DER is a PKCS8 PrivateKeyInfo rather than a SEC1 ECPrivateKey.

    Both open with SEQUENCE { INTEGER version, ... }; PKCS8 follows the
    version with an AlgorithmIdentifier SEQUENCE, SEC1 with an OCTET STRING.
    """
    if len(der) < 2 or der[0] != 0x30:
        return False
    offset = 2 if der[1] < 0x80 else 2 + (der[1] & 0x7F)
    if offset + 2 > len(der) or der[offset] != 0x02:
        return False
    offset += 2 + der[offset + 1]
    return offset < len(der) and der[offset] == 0x30


def resolve_key(key_material: Any, role: KeyRole) -> Any:
    """Resolve key material to a native key handle for the given role.

    Native handles are returned unchanged. Strings are treated as
    Base64 DER: PKCS8 for signing keys, SPKI for verification keys.

    Args:
        key_material: A native EC key or a Base64 DER string.
        role: Whether the key will sign or verify.

    Returns:
        An EllipticCurvePrivateKey (signing) or EllipticCurvePublicKey
        (verification).

    Raises:
        KeyFormatError: If the material is not a valid P-256 key for the role.
    """
    if role is KeyRole.SIGNING:
        expected: type = ec.EllipticCurvePrivateKey
    else:
        expected = ec.EllipticCurvePublicKey

    if isinstance(key_material, expected):
        _check_curve(key_material)
        return key_material

    if not isinstance(key_material, str):
        raise KeyFormatError(
            f"Unsupported key material for {role.value}: {type(key_material).__name__}"
        )

    der = _decode_base64(key_material.strip())

    try:
        if role is KeyRole.SIGNING:
            key = serialization.load_der_private_key(der, password=None)
        else:
            key = serialization.load_der_public_key(der)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        LOGGER.debug("Failed to load %s key from DER: %s", role.value, e)
        raise KeyFormatError(f"Invalid {role.value} key: {e}") from e

    if role is KeyRole.SIGNING and not _is_pkcs8(der):
        raise KeyFormatError("Signing key must be PKCS8 DER, not SEC1 or another encoding")

    if not isinstance(key, expected):
        raise KeyFormatError(
            f"Expected an EC {role.value} key, got {type(key).__name__}"
        )

    _check_curve(key)
    return key


def encode_public_key(key: ec.EllipticCurvePublicKey) -> str:
    """Encode a public key as Base64 SPKI DER."""
    der = key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return base64.b64encode(der).decode("ascii")


def encode_private_key(key: ec.EllipticCurvePrivateKey) -> str:
    """Encode a private key as Base64 unencrypted PKCS8 DER."""
    der = key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return base64.b64encode(der).decode("ascii")


def generate_key_pair() -> KeyPair:
    """Generate a new P-256 key pair in the boundary encodings."""
    private_key = ec.generate_private_key(CURVE())
    return KeyPair(
        public_key=encode_public_key(private_key.public_key()),
        private_key=encode_private_key(private_key),
    )


def create_wallet() -> Wallet:
    """Generate a key pair with a self-issued did:example identifier."""
    key_pair = generate_key_pair()
    return Wallet(
        did=f"did:example:{uuid.uuid4()}",
        public_key=key_pair.public_key,
        private_key=key_pair.private_key,
    )


def _base64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _base64url_decode(data: str) -> bytes:
    """Decode base64url without padding."""
    padding = 4 - (len(data) % 4)
    if padding != 4:
        data += "=" * padding
    return base64.urlsafe_b64decode(data)


def public_key_to_jwk(key: VerificationKey, alg: str | None = "ES256") -> dict[str, str]:
    """Export a P-256 public key as a JWK.

    Args:
        key: Native public key or Base64 SPKI DER string.
        alg: Optional JWA algorithm name to include.

    Returns:
        JWK dictionary with kty, crv, x, y (and alg if given).
    """
    public_key = resolve_key(key, KeyRole.VERIFICATION)
    numbers = public_key.public_numbers()

    jwk = {
        "kty": "EC",
        "crv": CURVE_NAME,
        "x": _base64url_encode(numbers.x.to_bytes(JWK_COORDINATE_SIZE, byteorder="big")),
        "y": _base64url_encode(numbers.y.to_bytes(JWK_COORDINATE_SIZE, byteorder="big")),
    }
    if alg:
        jwk["alg"] = alg
    return jwk


def public_key_from_jwk(jwk: dict[str, Any]) -> ec.EllipticCurvePublicKey:
    """Build a native P-256 public key from a JWK.

    Raises:
        KeyFormatError: If the JWK is not an EC P-256 public key.
    """
    if jwk.get("kty") != "EC" or jwk.get("crv") != CURVE_NAME:
        raise KeyFormatError(
            f"Expected an EC {CURVE_NAME} JWK, got kty={jwk.get('kty')} crv={jwk.get('crv')}"
        )
    if not jwk.get("x") or not jwk.get("y"):
        raise KeyFormatError("JWK is missing x or y coordinate")

    try:
        x = int.from_bytes(_base64url_decode(jwk["x"]), byteorder="big")
        y = int.from_bytes(_base64url_decode(jwk["y"]), byteorder="big")
        return ec.EllipticCurvePublicNumbers(x, y, CURVE()).public_key()
    except (binascii.Error, ValueError, TypeError) as e:
        raise KeyFormatError(f"Invalid JWK coordinates: {e}") from e

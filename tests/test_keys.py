"""Tests for key normalization and key material helpers."""

import base64
import re

import pytest

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from vc_signer import (
    KeyFormatError,
    KeyRole,
    create_wallet,
    encode_private_key,
    encode_public_key,
    generate_key_pair,
    public_key_from_jwk,
    public_key_to_jwk,
    resolve_key,
)

BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")


class TestResolveKey:
    """Tests for resolving key material to native handles."""

    def test_native_private_key_unchanged(self, ec_key_pair):
        """Test that native private keys are returned as-is."""
        private_key, _ = ec_key_pair
        assert resolve_key(private_key, KeyRole.SIGNING) is private_key

    def test_native_public_key_unchanged(self, ec_key_pair):
        """Test that native public keys are returned as-is."""
        _, public_key = ec_key_pair
        assert resolve_key(public_key, KeyRole.VERIFICATION) is public_key

    def test_base64_private_key(self, key_pair):
        """Test that Base64 PKCS8 DER resolves to a private key."""
        key = resolve_key(key_pair.private_key, KeyRole.SIGNING)
        assert isinstance(key, ec.EllipticCurvePrivateKey)
        assert isinstance(key.curve, ec.SECP256R1)

    def test_base64_public_key(self, key_pair):
        """Test that Base64 SPKI DER resolves to a public key."""
        key = resolve_key(key_pair.public_key, KeyRole.VERIFICATION)
        assert isinstance(key, ec.EllipticCurvePublicKey)

    def test_invalid_base64(self):
        """Test that malformed Base64 raises KeyFormatError."""
        with pytest.raises(KeyFormatError, match="Base64"):
            resolve_key("not valid base64!!", KeyRole.VERIFICATION)

    def test_garbage_der(self):
        """Test that valid Base64 of non-key bytes raises KeyFormatError."""
        garbage = base64.b64encode(b"definitely not a key").decode()
        with pytest.raises(KeyFormatError):
            resolve_key(garbage, KeyRole.SIGNING)

    def test_public_key_for_signing_role(self, key_pair):
        """Test that an SPKI key cannot be loaded as a signing key."""
        with pytest.raises(KeyFormatError):
            resolve_key(key_pair.public_key, KeyRole.SIGNING)

    def test_private_key_for_verification_role(self, key_pair):
        """Test that a PKCS8 key cannot be loaded as a verification key."""
        with pytest.raises(KeyFormatError):
            resolve_key(key_pair.private_key, KeyRole.VERIFICATION)

    def test_native_key_wrong_role(self, ec_key_pair):
        """Test that a native public key is rejected for signing."""
        _, public_key = ec_key_pair
        with pytest.raises(KeyFormatError, match="Unsupported key material"):
            resolve_key(public_key, KeyRole.SIGNING)

    def test_wrong_curve_native(self):
        """Test that a P-384 key is rejected."""
        private_key = ec.generate_private_key(ec.SECP384R1())
        with pytest.raises(KeyFormatError, match="curve"):
            resolve_key(private_key, KeyRole.SIGNING)

    def test_wrong_curve_encoded(self):
        """Test that a Base64 P-384 public key is rejected."""
        public_key = ec.generate_private_key(ec.SECP384R1()).public_key()
        encoded = encode_public_key(public_key)
        with pytest.raises(KeyFormatError, match="curve"):
            resolve_key(encoded, KeyRole.VERIFICATION)

    def test_non_ec_key(self):
        """Test that an Ed25519 key is rejected."""
        der = ed25519.Ed25519PrivateKey.generate().private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        with pytest.raises(KeyFormatError, match="EC signing key"):
            resolve_key(base64.b64encode(der).decode(), KeyRole.SIGNING)

    def test_sec1_private_key_rejected(self, ec_key_pair):
        """Test that a SEC1 (TraditionalOpenSSL) private key is not accepted."""
        private_key, _ = ec_key_pair
        der = private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
        with pytest.raises(KeyFormatError, match="PKCS8"):
            resolve_key(base64.b64encode(der).decode(), KeyRole.SIGNING)

    def test_unsupported_type(self):
        """Test that non-string, non-key material is rejected."""
        with pytest.raises(KeyFormatError):
            resolve_key(12345, KeyRole.VERIFICATION)


class TestKeyGeneration:
    """Tests for key pair and wallet generation."""

    def test_generate_key_pair_encodings(self):
        """Test that generated keys are Base64 SPKI / PKCS8 DER on P-256."""
        key_pair = generate_key_pair()

        assert BASE64_PATTERN.match(key_pair.public_key)
        assert BASE64_PATTERN.match(key_pair.private_key)

        public_key = serialization.load_der_public_key(base64.b64decode(key_pair.public_key))
        private_key = serialization.load_der_private_key(
            base64.b64decode(key_pair.private_key), password=None
        )
        assert isinstance(public_key.curve, ec.SECP256R1)
        assert public_key.curve.key_size == 256
        assert private_key.public_key().public_numbers() == public_key.public_numbers()

    def test_key_pairs_unique(self):
        """Test that each generated key pair is different."""
        first = generate_key_pair()
        second = generate_key_pair()
        assert first.public_key != second.public_key
        assert first.private_key != second.private_key

    def test_generated_keys_sign_and_verify(self, key_pair):
        """Test that generated keys work with the raw primitive."""
        private_key = resolve_key(key_pair.private_key, KeyRole.SIGNING)
        public_key = resolve_key(key_pair.public_key, KeyRole.VERIFICATION)

        signature = private_key.sign(b"message", ec.ECDSA(hashes.SHA256()))
        public_key.verify(signature, b"message", ec.ECDSA(hashes.SHA256()))

    def test_key_pair_to_dict(self, key_pair):
        """Test the wire shape of a key pair."""
        assert key_pair.to_dict() == {
            "publicKey": key_pair.public_key,
            "privateKey": key_pair.private_key,
        }

    def test_create_wallet(self):
        """Test that a wallet carries a did:example identifier and keys."""
        wallet = create_wallet()

        assert wallet.did.startswith("did:example:")
        assert resolve_key(wallet.public_key, KeyRole.VERIFICATION)
        assert resolve_key(wallet.private_key, KeyRole.SIGNING)
        assert create_wallet().did != wallet.did

    def test_encode_roundtrip(self, ec_key_pair):
        """Test that native keys survive encoding."""
        private_key, public_key = ec_key_pair

        decoded_private = resolve_key(encode_private_key(private_key), KeyRole.SIGNING)
        decoded_public = resolve_key(encode_public_key(public_key), KeyRole.VERIFICATION)

        assert decoded_private.private_numbers() == private_key.private_numbers()
        assert decoded_public.public_numbers() == public_key.public_numbers()


class TestJWK:
    """Tests for JWK export and import."""

    def test_to_jwk(self, ec_key_pair):
        """Test exporting a public key as JWK."""
        _, public_key = ec_key_pair
        jwk = public_key_to_jwk(public_key)

        assert jwk["kty"] == "EC"
        assert jwk["crv"] == "P-256"
        assert jwk["alg"] == "ES256"
        assert "=" not in jwk["x"]
        assert len(jwk["x"]) == 43

    def test_to_jwk_without_alg(self, key_pair):
        """Test exporting a Base64 public key without alg."""
        jwk = public_key_to_jwk(key_pair.public_key, alg=None)
        assert "alg" not in jwk

    def test_from_jwk(self, ec_key_pair):
        """Test rebuilding a public key from JWK."""
        _, public_key = ec_key_pair
        rebuilt = public_key_from_jwk(public_key_to_jwk(public_key))
        assert rebuilt.public_numbers() == public_key.public_numbers()

    def test_from_jwk_wrong_curve(self):
        """Test that non P-256 JWKs are rejected."""
        with pytest.raises(KeyFormatError, match="P-256"):
            public_key_from_jwk({"kty": "EC", "crv": "P-384", "x": "AA", "y": "AA"})

    def test_from_jwk_missing_coordinate(self):
        """Test that incomplete JWKs are rejected."""
        with pytest.raises(KeyFormatError, match="missing"):
            public_key_from_jwk({"kty": "EC", "crv": "P-256", "x": "AA"})

    def test_from_jwk_point_not_on_curve(self):
        """Test that coordinates off the curve are rejected."""
        with pytest.raises(KeyFormatError):
            public_key_from_jwk({"kty": "EC", "crv": "P-256", "x": "AQ", "y": "AQ"})

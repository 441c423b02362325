"""
VC Signer - Verifiable Credentials signing and verification library.

Supports:
- EcdsaSecp256r1Signature2019 proofs over RFC 8785 canonical JSON
- ECDSA P-256 (secp256r1) with SHA-256
- Base64 SPKI / PKCS8 DER key formats
- Verifiable Presentations with authentication proofs
"""

from vc_signer.canonical import CanonicalizationError, canonical_bytes, canonicalize
from vc_signer.keys import (
    KeyFormatError,
    KeyPair,
    KeyRole,
    Wallet,
    create_wallet,
    encode_private_key,
    encode_public_key,
    generate_key_pair,
    public_key_from_jwk,
    public_key_to_jwk,
    resolve_key,
)
from vc_signer.models import (
    CREDENTIALS_V1_CONTEXT,
    CREDENTIALS_V2_CONTEXT,
    Credential,
    CredentialBuilder,
    Presentation,
    PresentationBuilder,
    ValidationError,
)
from vc_signer.proof import PROOF_TYPE, Proof, ProofPurpose, create_proof
from vc_signer.service import AuditEvent, CredentialService, SigningError

__version__ = "0.1.0"

__all__ = [
    "AuditEvent",
    "CanonicalizationError",
    "Credential",
    "CredentialBuilder",
    "CredentialService",
    "CREDENTIALS_V1_CONTEXT",
    "CREDENTIALS_V2_CONTEXT",
    "KeyFormatError",
    "KeyPair",
    "KeyRole",
    "Presentation",
    "PresentationBuilder",
    "PROOF_TYPE",
    "Proof",
    "ProofPurpose",
    "SigningError",
    "ValidationError",
    "Wallet",
    "canonical_bytes",
    "canonicalize",
    "create_proof",
    "create_wallet",
    "encode_private_key",
    "encode_public_key",
    "generate_key_pair",
    "public_key_from_jwk",
    "public_key_to_jwk",
    "resolve_key",
]

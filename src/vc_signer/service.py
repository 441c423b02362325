"""
Signing and verification of Verifiable Credentials and Presentations.

Implements EcdsaSecp256r1Signature2019 proofs:
1. Canonicalize the document without its proof (RFC 8785 JCS)
2. Sign the canonical UTF-8 bytes with ECDSA P-256 / SHA-256
3. Embed the Base64 DER signature as proofValue

Verification is a predicate: tampered, unsigned or malformed documents
yield False. Only caller errors such as an unparseable public key raise.
"""

from __future__ import annotations

import base64
import binascii
import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from vc_signer.canonical import PROOF_FIELD, CanonicalizationError, canonical_bytes
from vc_signer.keys import KeyRole, SigningKey, VerificationKey, resolve_key
from vc_signer.proof import PROOF_TYPE, ProofPurpose, create_proof

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger("vc_signer.audit")

ALGORITHM = "ECDSA P-256 / SHA-256"
RAW_SIGNATURE_SIZE = 64


class SigningError(Exception):
    """Raised when the underlying signature operation fails."""


class DocumentKind(Enum):
    """Kind of document being signed or verified."""

    CREDENTIAL = "credential"
    PRESENTATION = "presentation"


@dataclass(frozen=True)
class AuditEvent:
    """Structured record of a sign or verify operation.

    Never carries key material, signatures or document contents.
    """

    event: str
    document_kind: str
    algorithm: str = ALGORITHM
    outcome: bool | None = None


AuditSink = Callable[[AuditEvent], None]


def log_audit_event(event: AuditEvent) -> None:
    """Default audit sink, writes one INFO record per operation."""
    if event.event == "signed":
        AUDIT_LOGGER.info("Signed %s with %s", event.document_kind, event.algorithm)
    else:
        AUDIT_LOGGER.info(
            "Verified %s signature with %s: %s",
            event.document_kind,
            event.algorithm,
            event.outcome,
        )


def _to_plain(document: Any) -> dict[str, Any]:
    """Deep copy a document into a plain dictionary."""
    if hasattr(document, "to_dict"):
        return document.to_dict()
    if not isinstance(document, Mapping):
        raise CanonicalizationError(
            f"Expected a JSON object, got {type(document).__name__}"
        )
    return copy.deepcopy(dict(document))


class CredentialService:
    """Signs and verifies credentials and presentations.

    Holds no mutable state between calls; a single instance may be
    shared by concurrent callers.
    """

    PLACEHOLDER_ISSUER = "did:example:issuer"
    PLACEHOLDER_HOLDER = "did:example:holder"

    def __init__(
        self,
        audit_sink: AuditSink | None = None,
        key_id: str = "key-1",
    ) -> None:
        """Initialize the service.

        Args:
            audit_sink: Callable receiving an AuditEvent per operation.
                Defaults to logging on the ``vc_signer.audit`` logger.
            key_id: Fragment appended to the signer DID to form the
                verificationMethod.
        """
        self.audit_sink = audit_sink or log_audit_event
        self.key_id = key_id

    def sign(
        self,
        credential: Any,
        private_key: SigningKey,
        verification_method: str | None = None,
    ) -> dict[str, Any]:
        """Sign a Verifiable Credential.

        Args:
            credential: Credential model or dictionary.
            private_key: Native EC private key or Base64 PKCS8 DER.
            verification_method: Override for the proof verificationMethod.
                Derived from the issuer when omitted.

        Returns:
            A new dictionary with the proof attached.

        Raises:
            KeyFormatError: If the private key is malformed.
            CanonicalizationError: If the credential cannot be serialized.
            SigningError: If the signature operation fails.
        """
        document = _to_plain(credential)
        if verification_method is None:
            verification_method = self._verification_method(
                self._extract_id(document.get("issuer")), self.PLACEHOLDER_ISSUER
            )
        return self._sign(
            document,
            private_key,
            DocumentKind.CREDENTIAL,
            ProofPurpose.ASSERTION_METHOD,
            verification_method,
        )

    def sign_presentation(
        self,
        presentation: Any,
        private_key: SigningKey,
        verification_method: str | None = None,
    ) -> dict[str, Any]:
        """Sign a Verifiable Presentation with authentication purpose.

        The verificationMethod is derived from the holder when omitted.
        """
        document = _to_plain(presentation)
        if verification_method is None:
            verification_method = self._verification_method(
                self._extract_id(document.get("holder")), self.PLACEHOLDER_HOLDER
            )
        return self._sign(
            document,
            private_key,
            DocumentKind.PRESENTATION,
            ProofPurpose.AUTHENTICATION,
            verification_method,
        )

    def verify(self, credential: Any, public_key: VerificationKey) -> bool:
        """Verify the proof on a Verifiable Credential.

        Args:
            credential: Signed credential model or dictionary.
            public_key: Native EC public key or Base64 SPKI DER.

        Returns:
            True if the signature is valid, False otherwise.

        Raises:
            KeyFormatError: If the public key is malformed.
        """
        return self._verify(credential, public_key, DocumentKind.CREDENTIAL)

    def verify_presentation(self, presentation: Any, public_key: VerificationKey) -> bool:
        """Verify the proof on a Verifiable Presentation."""
        return self._verify(presentation, public_key, DocumentKind.PRESENTATION)

    def _sign(
        self,
        document: dict[str, Any],
        private_key: SigningKey,
        kind: DocumentKind,
        purpose: ProofPurpose,
        verification_method: str,
    ) -> dict[str, Any]:
        proof = create_proof(purpose, verification_method, proof_type=PROOF_TYPE)

        message_bytes = canonical_bytes(document, exclude_proof=True)
        signing_key = resolve_key(private_key, KeyRole.SIGNING)

        try:
            signature = signing_key.sign(message_bytes, ec.ECDSA(hashes.SHA256()))
        except Exception as e:
            raise SigningError(f"Failed to sign {kind.value}: {e}") from e

        proof = proof.with_value(base64.b64encode(signature).decode("ascii"))

        signed = copy.deepcopy(document)
        signed[PROOF_FIELD] = proof.to_dict()

        self.audit_sink(AuditEvent(event="signed", document_kind=kind.value))
        return signed

    def _verify(self, document: Any, public_key: VerificationKey, kind: DocumentKind) -> bool:
        valid = self._check_signature(document, public_key)
        self.audit_sink(
            AuditEvent(event="verified", document_kind=kind.value, outcome=valid)
        )
        return valid

    def _check_signature(self, document: Any, public_key: VerificationKey) -> bool:
        try:
            data = _to_plain(document)
        except CanonicalizationError:
            return False

        proof = data.get(PROOF_FIELD)
        if not isinstance(proof, Mapping) or not proof.get("proofValue"):
            return False

        proof_value = proof["proofValue"]
        if not isinstance(proof_value, str):
            return False

        unsigned = {k: v for k, v in data.items() if k != PROOF_FIELD}
        try:
            message_bytes = canonical_bytes(unsigned)
        except CanonicalizationError as e:
            LOGGER.debug("Treating uncanonicalizable document as invalid: %s", e)
            return False

        verification_key = resolve_key(public_key, KeyRole.VERIFICATION)

        try:
            signature_bytes = base64.b64decode(proof_value, validate=True)
        except (binascii.Error, ValueError):
            return False

        return self._verify_signature(verification_key, signature_bytes, message_bytes)

    def _verify_signature(
        self,
        public_key: ec.EllipticCurvePublicKey,
        signature_bytes: bytes,
        message_bytes: bytes,
    ) -> bool:
        """Verify an ECDSA signature in DER or raw r||s form."""
        try:
            public_key.verify(signature_bytes, message_bytes, ec.ECDSA(hashes.SHA256()))
            return True
        except InvalidSignature:
            pass

        # Raw r||s format (64 bytes for P-256)
        if len(signature_bytes) != RAW_SIGNATURE_SIZE:
            return False

        r = int.from_bytes(signature_bytes[:32], byteorder="big")
        s = int.from_bytes(signature_bytes[32:], byteorder="big")
        try:
            public_key.verify(
                encode_dss_signature(r, s),
                message_bytes,
                ec.ECDSA(hashes.SHA256()),
            )
            return True
        except InvalidSignature:
            return False

    def _verification_method(self, signer: str | None, placeholder: str) -> str:
        did = signer if signer and signer.startswith("did:") else placeholder
        return f"{did}#{self.key_id}"

    def _extract_id(self, value: Any) -> str | None:
        """Extract an identifier from a string or an object with an id."""
        if isinstance(value, str):
            return value
        if isinstance(value, Mapping):
            return value.get("id")
        return None

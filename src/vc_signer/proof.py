"""
Linked Data Proof records attached to credentials and presentations.

A proof is either unsigned (no proofValue yet) or fully populated.
Serialization is sparse: absent fields are omitted, never emitted as null.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

PROOF_TYPE = "EcdsaSecp256r1Signature2019"


class ProofPurpose(Enum):
    """Declared intended use of a signature."""

    ASSERTION_METHOD = "assertionMethod"
    AUTHENTICATION = "authentication"
    CAPABILITY_INVOCATION = "capabilityInvocation"
    CAPABILITY_DELEGATION = "capabilityDelegation"


def utc_timestamp(moment: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


@dataclass(frozen=True)
class Proof:
    """Signature metadata embedded in a signed document."""

    type: str | None = None
    created: str | None = None
    verification_method: str | None = None
    proof_purpose: str | None = None
    proof_value: str | None = None

    @property
    def is_signed(self) -> bool:
        """Whether the proof carries a signature value."""
        return bool(self.proof_value)

    def with_value(self, proof_value: str) -> Proof:
        """Return a copy of this proof carrying the given signature."""
        return replace(self, proof_value=proof_value)

    def to_dict(self) -> dict[str, str]:
        """Sparse JSON representation."""
        fields = (
            ("type", self.type),
            ("created", self.created),
            ("verificationMethod", self.verification_method),
            ("proofPurpose", self.proof_purpose),
            ("proofValue", self.proof_value),
        )
        return {name: value for name, value in fields if value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Proof:
        """Create a Proof from its JSON representation."""
        return cls(
            type=data.get("type"),
            created=data.get("created"),
            verification_method=data.get("verificationMethod"),
            proof_purpose=data.get("proofPurpose"),
            proof_value=data.get("proofValue"),
        )


def create_proof(
    purpose: ProofPurpose,
    verification_method: str,
    proof_type: str = PROOF_TYPE,
    created: str | None = None,
) -> Proof:
    """Create a fresh unsigned proof.

    Args:
        purpose: Proof purpose (assertionMethod for credentials,
            authentication for presentations).
        verification_method: DID URL of the signing key.
        proof_type: Algorithm identifier.
        created: Creation timestamp. Defaults to now.

    Returns:
        A Proof without proofValue.
    """
    return Proof(
        type=proof_type,
        created=created or utc_timestamp(),
        verification_method=verification_method,
        proof_purpose=purpose.value,
    )

"""
Verifiable Credential and Presentation records and their builders.

Records are frozen dataclasses built once through a builder whose
build() step performs all validation. Serialization follows the W3C
data models:
- v1 context: issuanceDate / expirationDate
- v2 context: validFrom / validUntil
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from vc_signer.proof import Proof

CREDENTIALS_V1_CONTEXT = "https://www.w3.org/2018/credentials/v1"
CREDENTIALS_V2_CONTEXT = "https://www.w3.org/ns/credentials/v2"

CREDENTIAL_TYPE = "VerifiableCredential"
PRESENTATION_TYPE = "VerifiablePresentation"


class ValidationError(Exception):
    """Raised when a document is missing a required field."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class SchemaVersion(Enum):
    """Credentials data model version, selected by @context."""

    V1 = "1.1"
    V2 = "2.0"

    @classmethod
    def from_context(cls, context: list[str]) -> SchemaVersion:
        return cls.V2 if CREDENTIALS_V2_CONTEXT in context else cls.V1

    @property
    def valid_from_field(self) -> str:
        return "validFrom" if self is SchemaVersion.V2 else "issuanceDate"

    @property
    def valid_until_field(self) -> str:
        return "validUntil" if self is SchemaVersion.V2 else "expirationDate"


def _resolve_alias(data: dict[str, Any], name: str, legacy: str) -> Any:
    """Read a field that may appear under its current or legacy name."""
    value = data.get(name)
    legacy_value = data.get(legacy)
    if value and legacy_value and value != legacy_value:
        raise ValidationError(
            name, f"Conflicting values for {name} and {legacy}: {value!r} != {legacy_value!r}"
        )
    return value or legacy_value


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@dataclass(frozen=True)
class Credential:
    """A W3C Verifiable Credential."""

    context: list[str]
    type: list[str]
    issuer: str | dict[str, Any]
    valid_from: str
    credential_subject: dict[str, Any]
    id: str | None = None
    valid_until: str | None = None
    proof: Proof | None = None

    @property
    def schema_version(self) -> SchemaVersion:
        return SchemaVersion.from_context(self.context)

    def to_dict(self, include_proof: bool = True) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary.

        Args:
            include_proof: Whether to include the proof field.

        Returns:
            Credential as a sparse dictionary.
        """
        version = self.schema_version
        doc: dict[str, Any] = {
            "@context": list(self.context),
            "type": list(self.type),
        }
        if self.id:
            doc["id"] = self.id
        doc["issuer"] = copy.deepcopy(self.issuer)
        doc[version.valid_from_field] = self.valid_from
        if self.valid_until:
            doc[version.valid_until_field] = self.valid_until
        doc["credentialSubject"] = copy.deepcopy(self.credential_subject)
        if include_proof and self.proof:
            doc["proof"] = self.proof.to_dict()
        return doc

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Credential:
        """Parse and validate a credential from its JSON representation.

        Raises:
            ValidationError: If a required field is missing.
        """
        builder = (
            CredentialBuilder()
            .context(_as_list(data.get("@context")))
            .types(_as_list(data.get("type")))
            .credential_subject(data.get("credentialSubject"))
        )
        if data.get("id"):
            builder.id(data["id"])
        if data.get("issuer"):
            builder.issuer(data["issuer"])

        valid_from = _resolve_alias(data, "validFrom", "issuanceDate")
        if valid_from:
            builder.valid_from(valid_from)
        valid_until = _resolve_alias(data, "validUntil", "expirationDate")
        if valid_until:
            builder.valid_until(valid_until)

        credential = builder.build()
        if isinstance(data.get("proof"), dict) and data["proof"]:
            credential = credential.with_proof(Proof.from_dict(data["proof"]))
        return credential

    def with_proof(self, proof: Proof | None) -> Credential:
        """Return a copy of this credential carrying the given proof."""
        return Credential(
            context=list(self.context),
            type=list(self.type),
            issuer=self.issuer,
            valid_from=self.valid_from,
            credential_subject=copy.deepcopy(self.credential_subject),
            id=self.id,
            valid_until=self.valid_until,
            proof=proof,
        )

    def __repr__(self) -> str:
        signed = "signed" if self.proof and self.proof.is_signed else "unsigned"
        return f"Credential({self.id or self.issuer}, {signed})"


CredentialLike = Union[Credential, dict]


@dataclass(frozen=True)
class Presentation:
    """A holder-assembled W3C Verifiable Presentation."""

    context: list[str]
    type: list[str]
    holder: str
    verifiable_credential: list[CredentialLike] = field(default_factory=list)
    id: str | None = None
    proof: Proof | None = None

    def to_dict(self, include_proof: bool = True) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        doc: dict[str, Any] = {
            "@context": list(self.context),
            "type": list(self.type),
        }
        if self.id:
            doc["id"] = self.id
        doc["holder"] = self.holder
        doc["verifiableCredential"] = [
            vc.to_dict() if isinstance(vc, Credential) else copy.deepcopy(vc)
            for vc in self.verifiable_credential
        ]
        if include_proof and self.proof:
            doc["proof"] = self.proof.to_dict()
        return doc

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Presentation:
        """Parse and validate a presentation from its JSON representation.

        Embedded credentials are kept as plain dictionaries so their
        proofs and any extra properties survive unchanged.
        """
        builder = (
            PresentationBuilder()
            .types(_as_list(data.get("type")))
            .verifiable_credential(_as_list(data.get("verifiableCredential")))
        )
        if data.get("@context"):
            builder.context(_as_list(data["@context"]))
        if data.get("id"):
            builder.id(data["id"])
        if data.get("holder"):
            builder.holder(data["holder"])

        presentation = builder.build()
        if isinstance(data.get("proof"), dict) and data["proof"]:
            presentation = presentation.with_proof(Proof.from_dict(data["proof"]))
        return presentation

    def with_proof(self, proof: Proof | None) -> Presentation:
        """Return a copy of this presentation carrying the given proof."""
        return Presentation(
            context=list(self.context),
            type=list(self.type),
            holder=self.holder,
            verifiable_credential=copy.deepcopy(self.verifiable_credential),
            id=self.id,
            proof=proof,
        )

    def __repr__(self) -> str:
        signed = "signed" if self.proof and self.proof.is_signed else "unsigned"
        return (
            f"Presentation({self.holder}, "
            f"{len(self.verifiable_credential)} credential(s), {signed})"
        )


class CredentialBuilder:
    """Fluent builder for Verifiable Credentials.

    Example:
        >>> credential = (
        ...     CredentialBuilder()
        ...     .add_context(CREDENTIALS_V2_CONTEXT)
        ...     .add_type("VerifiableCredential")
        ...     .issuer("did:example:issuer")
        ...     .valid_from("2024-01-01T00:00:00Z")
        ...     .credential_subject({"id": "did:example:subject"})
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        self._context: list[str] = []
        self._types: list[str] = []
        self._id: str | None = None
        self._issuer: str | dict[str, Any] | None = None
        self._valid_from: str | None = None
        self._valid_until: str | None = None
        self._credential_subject: dict[str, Any] | None = None

    def context(self, context: list[str]) -> CredentialBuilder:
        self._context = list(context)
        return self

    def add_context(self, context: str) -> CredentialBuilder:
        self._context.append(context)
        return self

    def types(self, types: list[str]) -> CredentialBuilder:
        self._types = list(types)
        return self

    def add_type(self, type_: str) -> CredentialBuilder:
        self._types.append(type_)
        return self

    def id(self, id_: str) -> CredentialBuilder:
        self._id = id_
        return self

    def issuer(self, issuer: str | dict[str, Any]) -> CredentialBuilder:
        """Issuer DID string, or an issuer object carrying an ``id``."""
        self._issuer = copy.deepcopy(issuer)
        return self

    def valid_from(self, timestamp: str) -> CredentialBuilder:
        self._valid_from = timestamp
        return self

    # Legacy (v1) name for valid_from
    issuance_date = valid_from

    def valid_until(self, timestamp: str) -> CredentialBuilder:
        self._valid_until = timestamp
        return self

    # Legacy (v1) name for valid_until
    expiration_date = valid_until

    def credential_subject(self, subject: dict[str, Any] | None) -> CredentialBuilder:
        self._credential_subject = copy.deepcopy(subject)
        return self

    def build(self) -> Credential:
        """Validate and build the credential.

        Raises:
            ValidationError: Naming the first missing field, checked in the
                order context, type, issuer, validFrom, credentialSubject.
        """
        if not self._context:
            raise ValidationError(
                "@context", "Verifiable Credential must have at least one context"
            )
        if not self._types:
            raise ValidationError("type", "Verifiable Credential must have at least one type")
        if CREDENTIAL_TYPE not in self._types:
            raise ValidationError("type", f"type must include '{CREDENTIAL_TYPE}'")
        if not self._issuer:
            raise ValidationError("issuer", "Verifiable Credential must have an issuer")
        if not self._valid_from:
            raise ValidationError(
                "validFrom", "Verifiable Credential must have a validFrom (issuance) date"
            )
        if self._credential_subject is None:
            raise ValidationError(
                "credentialSubject", "Verifiable Credential must have a credential subject"
            )

        return Credential(
            context=list(self._context),
            type=list(self._types),
            issuer=self._issuer,
            valid_from=self._valid_from,
            credential_subject=copy.deepcopy(self._credential_subject),
            id=self._id,
            valid_until=self._valid_until,
        )


class PresentationBuilder:
    """Fluent builder for Verifiable Presentations."""

    def __init__(self) -> None:
        self._context: list[str] = [CREDENTIALS_V2_CONTEXT]
        self._types: list[str] = []
        self._id: str | None = None
        self._holder: str | None = None
        self._credentials: list[CredentialLike] = []

    def context(self, context: list[str]) -> PresentationBuilder:
        self._context = list(context)
        return self

    def add_context(self, context: str) -> PresentationBuilder:
        self._context.append(context)
        return self

    def types(self, types: list[str]) -> PresentationBuilder:
        self._types = list(types)
        return self

    def add_type(self, type_: str) -> PresentationBuilder:
        self._types.append(type_)
        return self

    def id(self, id_: str) -> PresentationBuilder:
        self._id = id_
        return self

    def holder(self, holder: str) -> PresentationBuilder:
        self._holder = holder
        return self

    def verifiable_credential(self, credentials: list[CredentialLike]) -> PresentationBuilder:
        self._credentials = list(credentials)
        return self

    def add_credential(self, credential: CredentialLike) -> PresentationBuilder:
        self._credentials.append(credential)
        return self

    def build(self) -> Presentation:
        """Validate and build the presentation.

        Appends the VerifiablePresentation type when missing.

        Raises:
            ValidationError: If holder or credentials are missing.
        """
        if not self._holder:
            raise ValidationError("holder", "Holder is required")
        if not self._credentials:
            raise ValidationError(
                "verifiableCredential", "At least one verifiable credential is required"
            )

        if PRESENTATION_TYPE not in self._types:
            self._types.append(PRESENTATION_TYPE)

        return Presentation(
            context=list(self._context),
            type=list(self._types),
            holder=self._holder,
            verifiable_credential=copy.deepcopy(self._credentials),
            id=self._id,
        )

"""Shared fixtures for VC Signer tests."""

import pytest

from cryptography.hazmat.primitives.asymmetric import ec

from vc_signer import (
    CREDENTIALS_V1_CONTEXT,
    CREDENTIALS_V2_CONTEXT,
    CredentialBuilder,
    CredentialService,
    generate_key_pair,
)


@pytest.fixture
def ec_key_pair():
    """Generate a native EC P-256 key pair."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    return private_key, private_key.public_key()


@pytest.fixture
def key_pair():
    """Generate a Base64 DER encoded key pair."""
    return generate_key_pair()


@pytest.fixture
def other_key_pair():
    """An unrelated key pair."""
    return generate_key_pair()


@pytest.fixture
def audit_events():
    """Collected audit events."""
    return []


@pytest.fixture
def service(audit_events):
    """Service recording audit events in a list."""
    return CredentialService(audit_sink=audit_events.append)


@pytest.fixture
def credential():
    """An unsigned v2 credential as a plain dictionary."""
    return {
        "@context": [CREDENTIALS_V2_CONTEXT],
        "id": "urn:uuid:test-123",
        "type": ["VerifiableCredential"],
        "issuer": "did:example:A",
        "validFrom": "2020-01-01T00:00:00Z",
        "credentialSubject": {
            "id": "did:example:B",
            "name": "Test User",
            "degree": {"type": "BachelorDegree", "name": "Bachelor of Science"},
        },
    }


@pytest.fixture
def v1_credential():
    """An unsigned v1 credential model."""
    return (
        CredentialBuilder()
        .add_context(CREDENTIALS_V1_CONTEXT)
        .add_type("VerifiableCredential")
        .id("http://example.edu/credentials/3732")
        .issuer("https://example.edu/issuers/14")
        .issuance_date("2021-06-01T15:30:00Z")
        .credential_subject({"id": "did:example:ghijkl789012", "achievement": "Cryptography"})
        .build()
    )


@pytest.fixture
def presentation(credential):
    """An unsigned presentation as a plain dictionary."""
    return {
        "@context": [CREDENTIALS_V2_CONTEXT],
        "type": ["VerifiablePresentation"],
        "holder": "did:example:holder-1",
        "verifiableCredential": [credential],
    }

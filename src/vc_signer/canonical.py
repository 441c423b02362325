"""
Deterministic JSON canonicalization of credential documents.

The canonical form is the byte string that gets signed, per the JSON
Canonicalization Scheme (RFC 8785):
- Object keys sorted by UTF-16 code unit at every nesting level
- No insignificant whitespace
- Numbers in ECMAScript form (4.0 -> 4, 1e-07 -> 1e-7)
- Non-ASCII characters emitted literally, UTF-8 encoded
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import rfc8785

LOGGER = logging.getLogger(__name__)

PROOF_FIELD = "proof"


class CanonicalizationError(Exception):
    """Raised when a document cannot be deterministically serialized."""


def _as_mapping(document: Any) -> Mapping[str, Any]:
    """Return a plain mapping view of a document or model object."""
    if hasattr(document, "to_dict"):
        document = document.to_dict()
    if not isinstance(document, Mapping):
        raise CanonicalizationError(
            f"Expected a JSON object, got {type(document).__name__}"
        )
    return document


def _check_keys(value: Any) -> None:
    """Reject mapping keys that JSON would silently coerce to strings."""
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise CanonicalizationError(
                    f"Object keys must be strings, got {type(key).__name__}: {key!r}"
                )
            _check_keys(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _check_keys(item)


def canonicalize(document: Any, exclude_proof: bool = False) -> str:
    """Canonicalize a document to its deterministic JSON text.

    Args:
        document: A mapping, or a model exposing ``to_dict()``.
        exclude_proof: Drop the top-level ``proof`` field before serializing.

    Returns:
        Canonical JSON string.

    Raises:
        CanonicalizationError: If the document holds non-JSON values.
    """
    data = _as_mapping(document)

    if exclude_proof and PROOF_FIELD in data:
        data = {k: v for k, v in data.items() if k != PROOF_FIELD}

    _check_keys(data)

    try:
        return rfc8785.dumps(data).decode("utf-8")
    except (rfc8785.CanonicalizationError, TypeError, ValueError) as e:
        LOGGER.debug("Canonicalization failed: %s", e)
        raise CanonicalizationError(f"Failed to canonicalize document: {e}") from e


def canonical_bytes(document: Any, exclude_proof: bool = False) -> bytes:
    """UTF-8 encoded canonical form; the exact bytes that are signed."""
    return canonicalize(document, exclude_proof=exclude_proof).encode("utf-8")

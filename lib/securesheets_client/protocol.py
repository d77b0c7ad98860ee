from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProtocolDescriptor:
    """Describes how a signed request is assembled.

    Protocol revisions are new descriptor values rather than new code paths:
    ``required_fields`` are always signed (even when empty), ``optional_fields``
    are signed when the corresponding feature is enabled, and
    ``excluded_fields`` are dropped from requests entirely.
    """

    version: str
    required_fields: tuple[str, ...]
    optional_fields: tuple[str, ...]
    excluded_fields: tuple[str, ...]
    hash_algorithm: str
    signature_field: str
    nonce_field: str
    csrf_field: str
    csrf_header: str
    ordering: str = "lexicographic"


PROTOCOL_V1 = ProtocolDescriptor(
    version="1",
    required_fields=("action", "token", "timestamp", "origin"),
    optional_fields=("nonce", "csrf-token"),
    # referrer was signed by some clients and not others; it is never sent.
    excluded_fields=("referrer",),
    hash_algorithm="sha256",
    signature_field="signature",
    nonce_field="nonce",
    csrf_field="csrf-token",
    csrf_header="X-CSRF-Token",
)

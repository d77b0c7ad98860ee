from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Any, Mapping

from .errors import DependencyMissingError
from .jsonfmt import js_json, js_number
from .protocol import PROTOCOL_V1, ProtocolDescriptor

logger = logging.getLogger(__name__)


def _require_algorithm(name: str) -> None:
    if name not in hashlib.algorithms_available:
        raise DependencyMissingError(f"{name.upper()} is not available in this Python runtime.")


def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else stringify(v) for v in value)
    if isinstance(value, dict):
        return js_json(value)
    if isinstance(value, (int, float)):
        return js_number(value)
    return str(value)


def canonical_string(params: Mapping[str, Any], protocol: ProtocolDescriptor = PROTOCOL_V1) -> str:
    """Serialize ``params`` as sorted ``key=value`` pairs joined with ``&``.

    ``None`` values are left out; every other value, including the empty
    string, takes part. The signature field itself is never part of the input.
    """
    if protocol.ordering != "lexicographic":
        raise ValueError(f"unsupported ordering rule: {protocol.ordering}")
    pairs = []
    for key in sorted(params):
        if key == protocol.signature_field:
            continue
        value = params[key]
        if value is None:
            continue
        pairs.append(f"{key}={stringify(value)}")
    return "&".join(pairs)


def compute_hmac(message: str, secret: str, algorithm: str = "sha256") -> str:
    _require_algorithm(algorithm)
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), algorithm).hexdigest()


def sign(params: Mapping[str, Any], secret: str, protocol: ProtocolDescriptor = PROTOCOL_V1) -> str:
    return compute_hmac(canonical_string(params, protocol), secret, protocol.hash_algorithm)


def data_checksum(data: Any) -> str:
    """SHA-256 over ``JSON.stringify(data)`` as the server computes it."""
    _require_algorithm("sha256")
    return hashlib.sha256(js_json(data).encode("utf-8")).hexdigest()


def checksum_matches(data: Any, checksum: str) -> bool:
    computed = data_checksum(data)
    ok = hmac.compare_digest(computed, str(checksum).lower())
    if not ok:
        logger.debug("checksum mismatch: expected %s computed %s", checksum, computed)
    return ok


def verify_webhook_signature(payload: str | bytes | None, signature: str | None, secret: str | None) -> bool:
    if not payload or not signature or not secret:
        return False
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    expected = compute_hmac(payload, secret)
    return hmac.compare_digest(expected, signature)

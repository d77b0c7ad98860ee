from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Success:
    data: Any
    checksum: str | None = None
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Failure:
    code: str
    message: str
    details: Any = None
    raw: Any = field(default=None, compare=False, repr=False)


Envelope = Union[Success, Failure]


def _is_error_shaped(body: dict) -> bool:
    status = str(body.get("status") or "").lower()
    if status == "error":
        return True
    if body.get("success") is False:
        return True
    return "error" in body and "data" not in body and status != "success"


def failure_from_body(body: Any, fallback_message: str, fallback_code: str = "API_ERROR") -> Failure:
    if not isinstance(body, dict):
        return Failure(code=fallback_code, message=fallback_message, raw=body)
    message = body.get("error") or body.get("message") or fallback_message
    if isinstance(message, dict):
        message = message.get("message") or fallback_message
    return Failure(
        code=str(body.get("code") or fallback_code),
        message=str(message),
        details=body.get("details"),
        raw=body,
    )


def parse_envelope(body: Any) -> Envelope:
    """Normalize the server's response shapes into one tagged value.

    ``{"status": "success", "data": ...}`` and ``{"success": true, ...}`` are
    successes; bodies without a ``data`` field are their own payload.
    """
    if isinstance(body, dict):
        if _is_error_shaped(body):
            return failure_from_body(body, "Server returned an error")
        data = body["data"] if "data" in body else body
        checksum = body.get("checksum") if "data" in body else None
        return Success(data=data, checksum=str(checksum) if checksum else None, raw=body)
    return Success(data=body, raw=body)

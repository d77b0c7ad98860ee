from __future__ import annotations

import time
import traceback
from typing import Any, Iterable

from .errors import SecureSheetsError
from .timefmt import iso_timestamp

REDACTED = "***REDACTED***"


def _scrub(value: Any, secrets: list[str]) -> Any:
    if isinstance(value, str):
        for s in secrets:
            value = value.replace(s, REDACTED)
        return value
    if isinstance(value, dict):
        return {k: _scrub(v, secrets) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_scrub(v, secrets) for v in value]
    return value


def format_error(exc: BaseException, *, debug: bool = False, secrets: Iterable[str | None] = ()) -> dict[str, Any]:
    """Render an exception for display.

    The traceback is only included when ``debug`` is set; every value in
    ``secrets`` is replaced wherever it appears.
    """
    hidden = sorted({s for s in secrets if s}, key=len, reverse=True)
    if isinstance(exc, SecureSheetsError):
        message, code, details = exc.message, exc.code, exc.details
    else:
        message, code, details = str(exc), "UNKNOWN_ERROR", None
    out: dict[str, Any] = {
        "message": message,
        "code": code,
        "details": details,
        "timestamp": iso_timestamp(time.time()),
    }
    if debug:
        out["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return _scrub(out, hidden)

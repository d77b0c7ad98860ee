"""JSON text exactly as a JavaScript server would produce it.

Apps Script checksums and signs values through ``JSON.stringify`` and
``String(number)``. Python's ``json`` module differs on floats (``5e-05``
against ``0.00005``) and refuses to encode lone surrogates, so both are
rendered here by the ECMAScript rules.
"""
from __future__ import annotations

import json
import math
import re
from typing import Any

_SURROGATES = re.compile("([\ud800-\udbff][\udc00-\udfff])|[\ud800-\udfff]")


def js_number(value: int | float) -> str:
    """``Number.prototype.toString()`` for a finite or non-finite number."""
    if isinstance(value, bool):
        raise TypeError("booleans are not numbers here")
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    # repr() already yields the shortest round-tripping digits, as JS does
    mantissa, _, exp = repr(abs(value)).partition("e")
    whole, _, frac = mantissa.partition(".")
    digits = (whole + frac).lstrip("0")
    power = int(exp or 0) - len(frac)
    stripped = digits.rstrip("0")
    power += len(digits) - len(stripped)
    digits = stripped

    k = len(digits)
    n = power + k
    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        e = n - 1
        head = digits if k == 1 else digits[0] + "." + digits[1:]
        text = f"{head}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + text


def _js_string(text: str) -> str:
    encoded = json.dumps(text, ensure_ascii=False)

    def _fix(match: re.Match[str]) -> str:
        pair = match.group(1)
        if pair:
            return pair.encode("utf-16", "surrogatepass").decode("utf-16")
        return "\\u%04x" % ord(match.group(0))

    return _SURROGATES.sub(_fix, encoded)


def js_json(value: Any) -> str:
    """Compact ``JSON.stringify(value)``; key order is preserved."""
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return "null"
        return js_number(value)
    if isinstance(value, str):
        return _js_string(value)
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(js_json(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{" + ",".join(f"{_js_string(str(k))}:{js_json(v)}" for k, v in value.items()) + "}"
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")

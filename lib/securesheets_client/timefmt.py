from __future__ import annotations

from datetime import datetime, timezone


def iso_timestamp(epoch_s: float) -> str:
    """Render epoch seconds as ISO-8601 UTC with milliseconds, e.g. 2026-01-04T23:04:51.290Z."""
    dt = datetime.fromtimestamp(epoch_s, tz=timezone.utc)
    ms = dt.microsecond // 1000
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ms:03d}Z"


def epoch_ms(epoch_s: float) -> int:
    return int(epoch_s * 1000)

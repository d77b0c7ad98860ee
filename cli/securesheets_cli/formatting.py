from __future__ import annotations


def format_age(seconds: float | int | None) -> str:
    if seconds is None:
        return "-"
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        minutes = seconds // 60
        secs = seconds % 60
        return f"{minutes}m{secs:02d}s"
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    return f"{hours}h{minutes:02d}m"


def parse_pairs(pairs: list[str] | None) -> dict[str, str]:
    """Turn ``["sheet=Sheet2", "cell=A1"]`` into a dict; later keys win."""
    out: dict[str, str] = {}
    for raw in pairs or []:
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"expected key=value, got {raw!r}")
        out[key] = value
    return out

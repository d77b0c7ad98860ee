from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Mapping

from .errors import ConfigurationError

REDACTED = "***REDACTED***"

ENV_BASE_URL = "SHEETS_BASE_URL"
ENV_API_TOKEN = "API_TOKEN"
ENV_HMAC_SECRET = "HMAC_SECRET"
REQUIRED_ENV = (ENV_BASE_URL, ENV_API_TOKEN, ENV_HMAC_SECRET)


@dataclass(frozen=True)
class ClientConfig:
    endpoint: str = ""
    token: str = field(default="", repr=False)
    secret: str = field(default="", repr=False)
    origin: str = ""
    enable_csrf: bool = True
    enable_nonce: bool = True
    checksum_validation: bool = True
    enforce_https: bool = True
    rate_limit_enabled: bool = True
    max_requests: int = 100
    cache_ttl_s: float = 300.0
    timeout_s: float = 30.0
    debug: bool = False

    @property
    def is_complete(self) -> bool:
        return bool(self.endpoint and self.token and self.secret)

    def merged(self, **overrides: Any) -> "ClientConfig":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration option(s): {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> None:
        for name in ("endpoint", "token", "secret", "origin"):
            if not isinstance(getattr(self, name), str):
                raise ConfigurationError(f"{name} must be a string")
        endpoint = self.endpoint.strip()
        if not endpoint:
            raise ConfigurationError("endpoint cannot be empty", code="CONFIG_MISSING_URL")
        if self.enforce_https and not endpoint.lower().startswith("https://"):
            raise ConfigurationError("endpoint must use HTTPS", code="CONFIG_HTTPS_REQUIRED")
        if not self.token:
            raise ConfigurationError("API token is required", code="CONFIG_MISSING_TOKEN")
        if not self.secret:
            raise ConfigurationError("HMAC secret is required", code="CONFIG_MISSING_SECRET")
        if _number("max_requests", self.max_requests, int) <= 0:
            raise ConfigurationError("max_requests must be positive")
        if _number("cache_ttl_s", self.cache_ttl_s, float) < 0:
            raise ConfigurationError("cache_ttl_s cannot be negative")
        if _number("timeout_s", self.timeout_s, float) <= 0:
            raise ConfigurationError("timeout_s must be positive")

    def redacted(self) -> dict[str, Any]:
        data = asdict(self)
        data["token"] = REDACTED if self.token else ""
        data["secret"] = REDACTED if self.secret else ""
        return data


def _number(name: str, value: Any, kind: type) -> float:
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc


def _env_flag(env: Mapping[str, str], name: str) -> bool | None:
    raw = env.get(name)
    if raw is None:
        return None
    return raw.strip().lower() != "false"


def _env_number(env: Mapping[str, str], name: str, scale: float = 1.0) -> float | None:
    raw = (env.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if value <= 0:
        return None
    return value * scale


def options_from_env(env: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Read the zero-secret configuration variables.

    Booleans are ``"true"``/``"false"`` strings; durations are milliseconds.
    Raises ConfigurationError when any of the three required variables is absent.
    """
    env = os.environ if env is None else env
    missing = [name for name in REQUIRED_ENV if not (env.get(name) or "").strip()]
    if missing:
        raise ConfigurationError(
            "Missing required environment variables: " + ", ".join(missing),
            code="ENV_CONFIG_MISSING",
            details={"missing": missing},
        )

    max_requests = _env_number(env, "MAX_REQUESTS")
    debug = (env.get("DEBUG") or "").strip().lower() == "true" or env.get("NODE_ENV") == "development"
    return {
        "endpoint": env[ENV_BASE_URL].strip(),
        "token": env[ENV_API_TOKEN].strip(),
        "secret": env[ENV_HMAC_SECRET].strip(),
        "origin": (env.get("ORIGIN") or "").strip() or None,
        "enable_csrf": _env_flag(env, "ENABLE_CSRF"),
        "enable_nonce": _env_flag(env, "ENABLE_NONCE"),
        "checksum_validation": _env_flag(env, "CHECKSUM_VALIDATION"),
        "enforce_https": _env_flag(env, "ENFORCE_HTTPS"),
        "rate_limit_enabled": _env_flag(env, "RATE_LIMIT_ENABLED"),
        "max_requests": int(max_requests) if max_requests is not None else None,
        "cache_ttl_s": _env_number(env, "CACHE_TIMEOUT", 0.001),
        "timeout_s": _env_number(env, "DEFAULT_TIMEOUT", 0.001),
        "debug": debug,
    }

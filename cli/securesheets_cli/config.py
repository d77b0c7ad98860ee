from __future__ import annotations

import os
import tomllib
from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping

import tomli_w
from platformdirs import user_config_dir

from securesheets_client.config_types import ENV_API_TOKEN, ENV_BASE_URL, ENV_HMAC_SECRET

APP_NAME = "securesheets"
CONFIG_FILENAME = "config.toml"

# Never written to disk; only read from the environment.
SECRET_ENV = (ENV_API_TOKEN, ENV_HMAC_SECRET)


@dataclass
class Settings:
    endpoint: str = ""
    origin: str = ""
    enable_csrf: bool = True
    enable_nonce: bool = True
    checksum_validation: bool = True
    enforce_https: bool = True
    rate_limit_enabled: bool = True
    max_requests: int = 100
    cache_ttl_s: float = 300.0
    timeout_s: float = 30.0


SETTING_KEYS = tuple(f.name for f in fields(Settings))


def config_path() -> str:
    return f"{user_config_dir(APP_NAME)}/{CONFIG_FILENAME}"


def default_settings() -> Settings:
    return Settings()


def normalize_endpoint(raw: str | None) -> str:
    value = (raw or "").strip().rstrip("/")
    if not value:
        return ""
    lowered = value.lower()
    if lowered.startswith("http://") or lowered.startswith("https://"):
        return value
    return f"https://{value}"


def coerce_setting(key: str, raw: Any) -> Any:
    """Convert a raw (string or TOML) value to the type of setting ``key``."""
    default = getattr(Settings(), key)
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in {"true", "1", "yes", "on"}:
            return True
        if text in {"false", "0", "no", "off"}:
            return False
        raise ValueError(f"{key} expects true/false, got {raw!r}")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    if key == "endpoint":
        return normalize_endpoint(str(raw))
    return str(raw).strip()


def to_toml(settings: Settings) -> dict[str, Any]:
    return {k: v for k, v in asdict(settings).items() if v is not None}


def from_toml(data: dict[str, Any]) -> Settings:
    settings = default_settings()
    for key in SETTING_KEYS:
        if key not in data:
            continue
        try:
            setattr(settings, key, coerce_setting(key, data[key]))
        except (TypeError, ValueError):
            continue
    return settings


def load_settings() -> Settings:
    path = config_path()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return from_toml(data)
    except FileNotFoundError:
        return default_settings()


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)


def save_settings(settings: Settings) -> str:
    path = config_path()
    ensure_parent_dir(path)
    with open(path, "wb") as f:
        f.write(tomli_w.dumps(to_toml(settings)).encode("utf-8"))
    os.chmod(path, 0o600)
    return path


def client_options(
        settings: Settings,
        env: Mapping[str, str] | None = None,
        *,
        endpoint_override: str | None = None,
) -> dict[str, Any]:
    """Merge file settings with the environment; secrets come only from ``env``."""
    env = os.environ if env is None else env
    options: dict[str, Any] = asdict(settings)
    env_endpoint = (env.get(ENV_BASE_URL) or "").strip()
    if env_endpoint:
        options["endpoint"] = env_endpoint
    if endpoint_override:
        options["endpoint"] = normalize_endpoint(endpoint_override)
    options["token"] = (env.get(ENV_API_TOKEN) or "").strip()
    options["secret"] = (env.get(ENV_HMAC_SECRET) or "").strip()
    options["debug"] = (env.get("DEBUG") or "").strip().lower() == "true"
    return options

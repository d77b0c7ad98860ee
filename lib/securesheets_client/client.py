from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Mapping

import httpx

from . import signing
from .cache import ResponseCache, cache_key
from .config_types import ClientConfig, options_from_env
from .csrf import CsrfTokenCell
from .envelope import Failure, Success, parse_envelope
from .errors import ApiError, IntegrityError, NotConfiguredError, SecureSheetsError
from .errors_utils import format_error
from .nonces import NonceTracker
from .protocol import PROTOCOL_V1, ProtocolDescriptor
from .ratelimit import RateLimitWindow
from .server_info import ServerInfo, discover
from .timefmt import iso_timestamp
from .transport import Reply, Transport

logger = logging.getLogger(__name__)

VERSION = "1.4.0"


def _query_values(params: Mapping[str, Any]) -> dict[str, str]:
    # the query must carry the same text that was signed
    return {k: signing.stringify(v) for k, v in params.items() if v is not None}


class SignedApiClient:
    """HMAC-signed client for a SecureSheets Apps Script endpoint.

    Each instance owns its own configuration, nonce set, CSRF token, rate-limit
    window and response cache, so several clients can target different
    deployments side by side.
    """

    def __init__(
            self,
            cfg: ClientConfig | None = None,
            *,
            transport: httpx.BaseTransport | None = None,
            clock: Callable[[], float] = time.time,
            protocol: ProtocolDescriptor = PROTOCOL_V1,
    ):
        self._cfg = ClientConfig()
        self._clock = clock
        self._protocol = protocol
        self._http_transport = transport
        self._t: Transport | None = None
        self._lock = threading.Lock()
        self._server_info: ServerInfo | None = None
        self._nonces = NonceTracker(clock=clock)
        self._csrf = CsrfTokenCell(clock=clock)
        self._rate = RateLimitWindow(self._cfg.max_requests, clock=clock)
        self._cache = ResponseCache(self._cfg.cache_ttl_s, clock=clock)
        if cfg is not None:
            cfg.validate()
            self._apply(cfg)

    # --- configuration ---
    def configure(self, **options: Any) -> ClientConfig:
        """Merge ``options`` over the current config; unspecified fields are kept."""
        new_cfg = self._cfg.merged(**options)
        new_cfg.validate()
        self._apply(new_cfg)
        self._debug(
            "configured endpoint=%s has_token=%s has_secret=%s csrf=%s nonce=%s checksum=%s",
            new_cfg.endpoint,
            bool(new_cfg.token),
            bool(new_cfg.secret),
            new_cfg.enable_csrf,
            new_cfg.enable_nonce,
            new_cfg.checksum_validation,
        )
        return new_cfg

    def configure_with_discovery(self, **options: Any) -> ServerInfo | None:
        self.configure(**options)
        return self.discover()

    def configure_from_environment(
            self,
            env: Mapping[str, str] | None = None,
            *,
            with_discovery: bool = True,
    ) -> ServerInfo | None:
        options = options_from_env(env)
        if with_discovery:
            return self.configure_with_discovery(**options)
        self.configure(**options)
        return None

    def _apply(self, cfg: ClientConfig) -> None:
        with self._lock:
            old = self._cfg
            if self._t is None or cfg.endpoint != old.endpoint:
                if self._t is not None:
                    self._t.close()
                self._t = Transport(cfg.endpoint, timeout_s=cfg.timeout_s, transport=self._http_transport)
            self._cfg = cfg
        self._rate.max_requests = int(cfg.max_requests)
        self._cache.ttl_s = float(cfg.cache_ttl_s)
        if cfg.secret != old.secret or cfg.origin != old.origin:
            self._csrf.clear()
        # cached replies belong to the deployment and credentials that fetched them
        if (cfg.endpoint, cfg.token, cfg.secret) != (old.endpoint, old.token, old.secret):
            self._cache.clear()

    @property
    def config(self) -> ClientConfig:
        return self._cfg

    def get_config(self) -> dict[str, Any]:
        """Current configuration with token and secret redacted."""
        data = self._cfg.redacted()
        data["version"] = VERSION
        data["protocol"] = self._protocol.version
        return data

    def is_configured(self) -> bool:
        return self._cfg.is_complete and self._t is not None

    def set_debug(self, enable: bool = True) -> None:
        with self._lock:
            self._cfg = self._cfg.merged(debug=bool(enable))
        logger.info("debug mode %s", "enabled" if enable else "disabled")

    def _require_configured(self) -> tuple[ClientConfig, Transport]:
        with self._lock:
            cfg, t = self._cfg, self._t
        if not cfg.is_complete or t is None:
            raise NotConfiguredError()
        return cfg, t

    def _debug(self, msg: str, *args: Any) -> None:
        if self._cfg.debug:
            logger.debug(msg, *args)

    # --- server info / discovery ---
    def discover(self) -> ServerInfo | None:
        cfg, t = self._require_configured()
        info = discover(t, origin=cfg.origin, timeout_s=cfg.timeout_s)
        if info is not None:
            with self._lock:
                self._server_info = info
            self._debug("discovery complete version=%s format=%s", info.version, info.discovery_format)
        return info

    @property
    def server_info(self) -> ServerInfo | None:
        return self._server_info

    def has_feature(self, name: str) -> bool:
        info = self._server_info
        return info.has_feature(name) if info is not None else False

    # --- nonce / csrf / rate limit / cache state ---
    def csrf_token(self) -> str | None:
        cfg, _ = self._require_configured()
        if not cfg.enable_csrf:
            return None
        return self._csrf.get(cfg.secret, cfg.origin)

    def clear_csrf_token(self) -> None:
        self._csrf.clear()

    def nonce_status(self) -> dict[str, Any]:
        return {
            "enabled": self._cfg.enable_nonce,
            "used_count": len(self._nonces),
            "max_tracked": self._nonces.capacity,
        }

    def clear_nonces(self) -> None:
        self._nonces.clear()
        self._debug("used nonces cleared")

    def rate_limit_status(self) -> dict[str, Any]:
        client = {"enabled": self._cfg.rate_limit_enabled, **self._rate.status()}
        limits = self._server_info.limits if self._server_info is not None else {}
        return {
            "client": client,
            "server": {
                "remaining": limits.get("remaining"),
                "resets_at": limits.get("resets_at") or limits.get("resetsAt"),
            },
        }

    def reset_rate_limit(self) -> None:
        self._rate.reset()
        self._debug("rate limit counter reset")

    def clear_cache(self, key: str | None = None) -> None:
        self._cache.clear(key)
        self._debug("cache cleared (%s)", key or "all")

    # --- signing ---
    def sign_params(
            self,
            action: str,
            params: Mapping[str, Any] | None = None,
            *,
            csrf_token: str | None = None,
    ) -> dict[str, Any]:
        """Build the full signed parameter set for ``action``.

        Protocol fields override caller fields of the same name.
        """
        cfg, _ = self._require_configured()
        proto = self._protocol
        signed: dict[str, Any] = {
            k: v for k, v in (params or {}).items() if k not in proto.excluded_fields and k != proto.signature_field
        }
        signed.update(
            {
                "action": action,
                "token": cfg.token,
                "timestamp": iso_timestamp(self._clock()),
                "origin": cfg.origin,
            }
        )
        if cfg.enable_nonce:
            signed[proto.nonce_field] = self._nonces.generate()
        if csrf_token:
            signed[proto.csrf_field] = csrf_token
        signed[proto.signature_field] = signing.sign(signed, cfg.secret, proto)
        return signed

    # --- requests ---
    def get(
            self,
            action: str,
            params: Mapping[str, Any] | None = None,
            *,
            use_cache: bool = True,
            timeout: float | None = None,
    ) -> Success:
        cfg, t = self._require_configured()
        if cfg.rate_limit_enabled:
            self._rate.acquire()

        key = cache_key(action, params)
        if use_cache:
            cached = self._cache.get(key)
            if cached is not None:
                self._debug("cache hit for %s", key)
                return cached

        query = self.sign_params(action, params)
        self._debug("GET action=%s params=%s", action, sorted((params or {}).keys()))
        reply = t.request("GET", params=_query_values(query), timeout_s=timeout or cfg.timeout_s)
        result = self._accept(cfg, reply)
        if use_cache:
            self._cache.set(key, result)
        return result

    def post(
            self,
            action: str,
            body: Mapping[str, Any] | None = None,
            *,
            timeout: float | None = None,
    ) -> Success:
        cfg, t = self._require_configured()
        if cfg.rate_limit_enabled:
            self._rate.acquire()

        headers = {"Content-Type": "application/json"}
        token = None
        if cfg.enable_csrf:
            token = self._csrf.get(cfg.secret, cfg.origin)
            headers[self._protocol.csrf_header] = token

        payload = self.sign_params(action, body, csrf_token=token)
        self._debug("POST action=%s body=%s", action, sorted((body or {}).keys()))
        reply = t.request("POST", json_body=payload, headers=headers, timeout_s=timeout or cfg.timeout_s)
        return self._accept(cfg, reply)

    def public_get(
            self,
            action: str,
            params: Mapping[str, Any] | None = None,
            *,
            use_cache: bool = True,
            timeout: float | None = None,
    ) -> Success:
        """Unsigned GET for the server's public actions (health, scrolling, ...)."""
        cfg, t = self._require_configured()
        if cfg.rate_limit_enabled:
            self._rate.acquire()

        key = "public:" + cache_key(action, params)
        if use_cache:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        query = {k: v for k, v in (params or {}).items() if k not in self._protocol.excluded_fields}
        query["action"] = action
        if cfg.origin:
            query["origin"] = cfg.origin
        reply = t.request("GET", params=query, timeout_s=timeout or cfg.timeout_s)
        result = self._accept(cfg, reply)
        if use_cache:
            self._cache.set(key, result)
        return result

    def _accept(self, cfg: ClientConfig, reply: Reply) -> Success:
        envelope = parse_envelope(reply.data)
        if isinstance(envelope, Failure):
            raise ApiError(reply.status_code, envelope.message, code=envelope.code, details=envelope.details)
        if cfg.checksum_validation and envelope.checksum:
            if not signing.checksum_matches(envelope.data, envelope.checksum):
                raise IntegrityError(
                    "Data integrity check failed (checksum mismatch)",
                    details={"expected_checksum": envelope.checksum},
                )
        self._note_rate_headers(reply.headers)
        return envelope

    def _note_rate_headers(self, headers: Mapping[str, str]) -> None:
        raw = headers.get("X-RateLimit-Remaining")
        if raw is None:
            return
        try:
            remaining = int(raw)
        except ValueError:
            return
        with self._lock:
            if self._server_info is None:
                self._server_info = ServerInfo()
            self._server_info.limits["remaining"] = remaining

    # --- convenience API ---
    def get_data(
            self,
            sheet: str | list[str] | None = None,
            *,
            use_cache: bool = True,
            timeout: float | None = None,
    ) -> Success:
        params: dict[str, Any] = {}
        if isinstance(sheet, (list, tuple)):
            params["sheets"] = ",".join(sheet)
        elif sheet:
            params["sheet"] = sheet
        return self.get("getData", params, use_cache=use_cache, timeout=timeout)

    def post_data(self, data: Mapping[str, Any], *, timeout: float | None = None) -> Success:
        body = dict(data)
        action = str(body.pop("action", None) or "getData")
        return self.post(action, body, timeout=timeout)

    def health_check(self, *, timeout: float | None = None) -> Success:
        return self.public_get("health", use_cache=False, timeout=timeout)

    def test_connection(self) -> dict[str, Any]:
        """Run health, config and auth checks; failures are reported, not raised."""
        self._require_configured()
        results: dict[str, Any] = {
            "success": False,
            "tests": {
                "health": {"passed": False, "message": ""},
                "config": {"passed": False, "message": ""},
                "auth": {"passed": False, "message": ""},
            },
            "server": None,
            "timestamp": iso_timestamp(self._clock()),
        }
        tests = results["tests"]

        try:
            health = self.health_check()
            status = health.data.get("status") if isinstance(health.data, dict) else None
            tests["health"]["passed"] = status in ("online", "success", "ok")
            tests["health"]["message"] = (
                "Server is online" if tests["health"]["passed"] else "Server returned unexpected status"
            )
        except SecureSheetsError as exc:
            tests["health"]["message"] = f"Health check failed: {exc}"

        info = self.discover()
        if info is not None:
            tests["config"]["passed"] = True
            tests["config"]["message"] = f"Config endpoint accessible (?{info.discovery_format}=config)"
            results["server"] = {"version": info.version, "discovery_format": info.discovery_format}
        else:
            tests["config"]["message"] = "Config fetch failed"

        try:
            self.get_data(use_cache=False)
            tests["auth"]["passed"] = True
            tests["auth"]["message"] = "Authentication successful"
        except SecureSheetsError as exc:
            tests["auth"]["message"] = f"Authentication failed: {exc}"

        results["success"] = tests["health"]["passed"] and tests["config"]["passed"]
        return results

    verify_webhook_signature = staticmethod(signing.verify_webhook_signature)

    def format_error(self, exc: BaseException) -> dict[str, Any]:
        return format_error(exc, debug=self._cfg.debug, secrets=(self._cfg.token, self._cfg.secret))

    def close(self) -> None:
        with self._lock:
            if self._t is not None:
                self._t.close()
                self._t = None

    def __enter__(self) -> "SignedApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

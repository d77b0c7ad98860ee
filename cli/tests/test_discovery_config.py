from __future__ import annotations

import logging

import httpx
import pytest

from securesheets_client import ApiError, ConfigurationError, SignedApiClient, format_error
from securesheets_client.config_types import ClientConfig, options_from_env
from securesheets_client.server_info import ServerInfo

ENDPOINT = "https://script.example/macros/s/abc/exec"
ENV = {"SHEETS_BASE_URL": ENDPOINT, "API_TOKEN": "T0KEN", "HMAC_SECRET": "S3CRET"}
CONFIG = {"version": "3.7.0", "features": ["gateway", "csrf"], "limits": {"maxRequests": 100}}


def _client(handler) -> SignedApiClient:
    return SignedApiClient(transport=httpx.MockTransport(handler))


def test_discovery_prefers_type_config() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(dict(request.url.params))
        return httpx.Response(200, json={"success": True, "version": "3.9.0", "features": {"core": ["csrf"]}})

    client = _client(handler)
    info = client.configure_with_discovery(endpoint=ENDPOINT, token="T", secret="S")

    assert seen == [{"type": "config"}]
    assert info is not None
    assert info.version == "3.9.0"
    assert info.discovery_format == "type"
    assert client.has_feature("csrf")
    assert not client.has_feature("gateway")


@pytest.mark.parametrize(
    "primary",
    [
        lambda r: httpx.Response(404, text="not found"),
        lambda r: httpx.Response(200, json={"success": False, "error": "Unknown type"}),
    ],
)
def test_discovery_falls_back_to_action_config(primary) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("type") == "config":
            return primary(request)
        assert request.url.params.get("action") == "config"
        return httpx.Response(200, json=CONFIG)

    client = _client(handler)
    info = client.configure_with_discovery(endpoint=ENDPOINT, token="T", secret="S")

    assert info is not None
    assert info.discovery_format == "action"
    assert info.version == "3.7.0"
    assert info.limits == {"maxRequests": 100}
    assert client.server_info is info
    assert client.has_feature("gateway")


def test_discovery_failure_is_logged_not_raised(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client = _client(handler)
    with caplog.at_level(logging.WARNING, logger="securesheets_client.server_info"):
        info = client.configure_with_discovery(endpoint=ENDPOINT, token="T", secret="S")

    assert info is None
    assert client.server_info is None
    assert client.is_configured()
    assert "Auto-discovery failed" in caplog.text


def test_server_info_reads_nested_data() -> None:
    info = ServerInfo.from_payload({"status": "success", "data": {"version": "3.8.0", "features": {"gateway": True}}}, "type")
    assert info.version == "3.8.0"
    assert info.has_feature("gateway")
    assert not info.has_feature("csrf")


def test_configure_from_environment_requires_secrets() -> None:
    for missing in ENV:
        env = {k: v for k, v in ENV.items() if k != missing}
        with pytest.raises(ConfigurationError) as exc:
            SignedApiClient().configure_from_environment(env, with_discovery=False)
        assert exc.value.code == "ENV_CONFIG_MISSING"
        assert missing in exc.value.message


def test_configure_from_environment_parses_toggles() -> None:
    env = {
        **ENV,
        "ORIGIN": "https://shop.example",
        "ENABLE_CSRF": "false",
        "ENABLE_NONCE": "true",
        "RATE_LIMIT_ENABLED": "false",
        "MAX_REQUESTS": "250",
        "CACHE_TIMEOUT": "60000",
        "DEFAULT_TIMEOUT": "5000",
        "DEBUG": "true",
    }
    options = options_from_env(env)
    assert options["enable_csrf"] is False
    assert options["enable_nonce"] is True
    assert options["checksum_validation"] is None
    assert options["max_requests"] == 250
    assert options["cache_ttl_s"] == pytest.approx(60.0)
    assert options["timeout_s"] == pytest.approx(5.0)

    client = SignedApiClient()
    client.configure_from_environment(env, with_discovery=False)
    cfg = client.config
    assert cfg.origin == "https://shop.example"
    assert cfg.enable_csrf is False
    assert cfg.checksum_validation is True
    assert cfg.rate_limit_enabled is False
    assert cfg.debug is True


def test_configure_from_environment_runs_discovery() -> None:
    client = _client(lambda r: httpx.Response(200, json={"success": True, "version": "3.9.0"}))
    info = client.configure_from_environment(ENV)
    assert info is not None and info.version == "3.9.0"


def test_configure_validates_endpoint_and_https() -> None:
    client = SignedApiClient()
    with pytest.raises(ConfigurationError) as exc:
        client.configure(endpoint="", token="T", secret="S")
    assert exc.value.code == "CONFIG_MISSING_URL"
    with pytest.raises(ConfigurationError) as exc:
        client.configure(endpoint="http://script.example/exec", token="T", secret="S")
    assert exc.value.code == "CONFIG_HTTPS_REQUIRED"
    with pytest.raises(ConfigurationError):
        client.configure(endpoint=ENDPOINT, token="T")
    assert not client.is_configured()

    client.configure(endpoint="http://localhost:8080/exec", token="T", secret="S", enforce_https=False)
    assert client.is_configured()


def test_configure_merges_over_existing_values() -> None:
    client = SignedApiClient(ClientConfig(endpoint=ENDPOINT, token="T", secret="S"))
    client.configure(max_requests=5)
    assert client.config.token == "T"
    assert client.config.secret == "S"
    assert client.config.max_requests == 5
    with pytest.raises(ConfigurationError):
        client.configure(colour="blue")


def test_config_never_exposes_secrets() -> None:
    cfg = ClientConfig(endpoint=ENDPOINT, token="T0KEN", secret="S3CRET")
    assert "T0KEN" not in repr(cfg)
    assert "S3CRET" not in repr(cfg)
    client = SignedApiClient(cfg)
    exported = client.get_config()
    assert exported["token"] == "***REDACTED***"
    assert exported["secret"] == "***REDACTED***"


def test_format_error_scrubs_secrets_and_hides_traceback() -> None:
    client = SignedApiClient(ClientConfig(endpoint=ENDPOINT, token="T0KEN", secret="S3CRET"))
    exc = ApiError(401, "token T0KEN rejected", code="AUTH_FAILED", details={"echo": "S3CRET"})

    out = client.format_error(exc)
    assert out["code"] == "AUTH_FAILED"
    assert "T0KEN" not in out["message"]
    assert out["details"] == {"echo": "***REDACTED***"}
    assert "traceback" not in out

    client.set_debug(True)
    try:
        raise exc
    except ApiError as raised:
        debug_out = client.format_error(raised)
    assert "traceback" in debug_out
    assert "T0KEN" not in debug_out["traceback"]


def test_format_error_for_foreign_exceptions() -> None:
    out = format_error(ValueError("boom"))
    assert out["code"] == "UNKNOWN_ERROR"
    assert out["message"] == "boom"


def test_discovery_uses_configured_timeout() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.extensions["timeout"]["read"])
        return httpx.Response(500, text="boom")

    client = _client(handler)
    client.configure(endpoint=ENDPOINT, token="T", secret="S")
    client.configure(timeout_s=5)
    assert client.discover() is None
    assert seen == [5, 5]


@pytest.mark.parametrize(
    "options",
    [
        {"max_requests": "abc"},
        {"timeout_s": "soon"},
        {"cache_ttl_s": [1]},
        {"endpoint": 123},
        {"token": 42},
    ],
)
def test_configure_rejects_badly_typed_values(options) -> None:
    client = SignedApiClient(ClientConfig(endpoint=ENDPOINT, token="T", secret="S"))
    with pytest.raises(ConfigurationError):
        client.configure(**options)
    assert client.config.endpoint == ENDPOINT

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .errors import ApiError, SecureSheetsError
from .transport import Transport

logger = logging.getLogger(__name__)

FORMAT_TYPE = "type"
FORMAT_ACTION = "action"


@dataclass
class ServerInfo:
    """Last known server capabilities. Advisory only."""

    version: str | None = None
    features: Any = None
    limits: dict[str, Any] = field(default_factory=dict)
    discovery_format: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any], discovery_format: str) -> "ServerInfo":
        body = payload
        if "version" not in body and isinstance(body.get("data"), dict):
            body = body["data"]
        limits = body.get("limits")
        return cls(
            version=str(body.get("version") or body.get("serverVersion") or "") or None,
            features=body.get("features"),
            limits=dict(limits) if isinstance(limits, dict) else {},
            discovery_format=discovery_format,
            raw=payload,
        )

    def has_feature(self, name: str) -> bool:
        features = self.features
        if isinstance(features, (list, tuple, set)):
            return name in features
        if isinstance(features, dict):
            core = features.get("core")
            if isinstance(core, (list, tuple)) and name in core:
                return True
            return features.get(name) is True
        return False


def fetch_config(
        transport: Transport,
        discovery_format: str,
        *,
        origin: str = "",
        timeout_s: float | None = None,
) -> dict[str, Any]:
    params = {discovery_format: "config"}
    if origin:
        params["origin"] = origin
    reply = transport.request("GET", params=params, timeout_s=timeout_s)
    data = reply.data
    if not isinstance(data, dict):
        raise ApiError(reply.status_code, "Server config response is not a JSON object", code="CONFIG_FETCH_FAILED")
    if data.get("success") is False or str(data.get("status") or "").lower() == "error":
        raise ApiError(
            reply.status_code,
            "Server returned error: " + str(data.get("error") or "Unknown error"),
            code="CONFIG_FETCH_FAILED",
            details=data,
        )
    return data


def discover(transport: Transport, *, origin: str = "", timeout_s: float | None = None) -> ServerInfo | None:
    """Try ``?type=config`` then the legacy ``?action=config``. Never raises."""
    try:
        payload = fetch_config(transport, FORMAT_TYPE, origin=origin, timeout_s=timeout_s)
        return ServerInfo.from_payload(payload, FORMAT_TYPE)
    except SecureSheetsError as exc:
        logger.debug("?type=config discovery failed (%s), trying ?action=config", exc)

    try:
        payload = fetch_config(transport, FORMAT_ACTION, origin=origin, timeout_s=timeout_s)
        return ServerInfo.from_payload(payload, FORMAT_ACTION)
    except SecureSheetsError as exc:
        logger.warning("Auto-discovery failed, using manual configuration: %s", exc)
        return None

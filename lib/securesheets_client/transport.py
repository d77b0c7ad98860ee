from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from .envelope import failure_from_body
from .errors import ApiError, NetworkError, RequestTimeoutError

logger = logging.getLogger(__name__)

USER_AGENT = "securesheets-client/1.4.0"


@dataclass
class Reply:
    status_code: int
    data: Any
    headers: Mapping[str, str] = field(default_factory=dict)


class Transport:
    """One httpx client bound to a single Apps Script endpoint."""

    def __init__(self, endpoint: str, *, timeout_s: float = 30.0, transport: httpx.BaseTransport | None = None):
        self._endpoint = endpoint
        self._client = httpx.Client(
            timeout=timeout_s,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            follow_redirects=True,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def close(self) -> None:
        self._client.close()

    def request(
            self,
            method: str,
            *,
            params: Mapping[str, Any] | None = None,
            json_body: Any | None = None,
            headers: Mapping[str, str] | None = None,
            timeout_s: float | None = None,
    ) -> Reply:
        kwargs: dict[str, Any] = {}
        if timeout_s is not None:
            kwargs["timeout"] = timeout_s
        try:
            r = self._client.request(
                method,
                self._endpoint,
                params={k: v for k, v in (params or {}).items() if v is not None} or None,
                json=json_body,
                headers=dict(headers or {}),
                **kwargs,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError("Request timeout", details={"timeout": timeout_s}) from e
        except httpx.RequestError as e:
            raise NetworkError(str(e) or e.__class__.__name__, details={"original_error": repr(e)}) from e

        # Apps Script answers JSON, but proxies and error pages do not
        data: Any = None
        try:
            data = r.json()
        except ValueError:
            data = None

        if r.status_code >= 400:
            fallback = f"HTTP {r.status_code}: {r.reason_phrase}"
            if data is None:
                raise ApiError(r.status_code, fallback, code="HTTP_ERROR", details=(r.text or "")[:1000] or None)
            failure = failure_from_body(data, fallback, "HTTP_ERROR")
            raise ApiError(r.status_code, failure.message, code=failure.code, details=failure.details)

        logger.debug("%s %s -> %s", method, self._endpoint, r.status_code)
        return Reply(status_code=r.status_code, data=data if data is not None else r.text, headers=r.headers)

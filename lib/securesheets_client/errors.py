from __future__ import annotations

from typing import Any

from .timefmt import iso_timestamp


class SecureSheetsError(Exception):
    """Base client error."""

    code = "UNKNOWN_ERROR"

    def __init__(self, message: str, code: str | None = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details


class ConfigurationError(SecureSheetsError):
    code = "CONFIG_INVALID"


class NotConfiguredError(SecureSheetsError):
    code = "NOT_CONFIGURED"

    def __init__(self, message: str = "Client is not configured. Call configure() first.", **kwargs):
        super().__init__(message, **kwargs)


class DependencyMissingError(SecureSheetsError):
    code = "DEPENDENCY_MISSING"


class NonceExhaustedError(SecureSheetsError):
    code = "NONCE_GENERATION_FAILED"


class RateLimitExceededError(SecureSheetsError):
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, reset_at: float, current: int, maximum: int):
        super().__init__(
            f"Rate limit exceeded. Resets at {iso_timestamp(reset_at)}",
            details={"reset_at": iso_timestamp(reset_at), "current": current, "maximum": maximum},
        )
        self.reset_at = reset_at
        self.current = current
        self.maximum = maximum


class NetworkError(SecureSheetsError):
    """Transport/network layer error."""

    code = "REQUEST_FAILED"


class RequestTimeoutError(SecureSheetsError, TimeoutError):
    """Request exceeded its timeout and was cancelled."""

    code = "TIMEOUT"


class ApiError(SecureSheetsError):
    code = "API_ERROR"

    def __init__(self, status_code: int, message: str, code: str | None = None, details: Any = None):
        super().__init__(message, code=code, details=details)
        self.status_code = status_code


class IntegrityError(SecureSheetsError):
    code = "CHECKSUM_MISMATCH"

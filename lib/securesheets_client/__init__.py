from .client import SignedApiClient
from .config_types import ClientConfig
from .envelope import Failure, Success
from .errors import (
    ApiError,
    ConfigurationError,
    DependencyMissingError,
    IntegrityError,
    NetworkError,
    NonceExhaustedError,
    NotConfiguredError,
    RateLimitExceededError,
    RequestTimeoutError,
    SecureSheetsError,
)
from .errors_utils import format_error
from .server_info import ServerInfo

__all__ = [
    "SignedApiClient",
    "ClientConfig",
    "ServerInfo",
    "Success",
    "Failure",
    "format_error",
    "SecureSheetsError",
    "ConfigurationError",
    "NotConfiguredError",
    "DependencyMissingError",
    "NonceExhaustedError",
    "RateLimitExceededError",
    "NetworkError",
    "RequestTimeoutError",
    "ApiError",
    "IntegrityError",
]

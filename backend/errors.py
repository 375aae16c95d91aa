"""SafeRoute Backend — Provider error taxonomy"""

from enum import Enum
from typing import Optional


class FailureReason(str, Enum):
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    HTTP_ERROR = "http_error"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    MALFORMED = "malformed"
    EMPTY = "empty"


class ProviderError(Exception):
    """Base class for every failure talking to the GeoProvider."""

    reason = FailureReason.HTTP_ERROR

    def __init__(self, message: str, reason: Optional[FailureReason] = None,
                 status_code: Optional[int] = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason
        self.status_code = status_code


class ConfigurationError(ProviderError):
    """Invalid or inactive API key (403). Never retried."""

    reason = FailureReason.UNAUTHORIZED


class RateLimited(ProviderError):
    reason = FailureReason.RATE_LIMITED


class TransientProviderError(ProviderError):
    """Timeouts, transport errors, 5xx/other statuses and malformed payloads."""


class NoResultsError(ProviderError):
    reason = FailureReason.EMPTY


class RoutingError(ProviderError):
    """The route-calculation call failed; nothing can be scored."""


class NoRoutesFoundError(RoutingError, NoResultsError):
    reason = FailureReason.EMPTY

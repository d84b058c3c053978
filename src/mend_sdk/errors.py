"""Error types for the Mend SDK.

Every failure surfaced by the SDK is a ``MendError``. Callers branch on
``error.code`` (an ``ErrorCode``); ``status``, ``details`` and ``context``
stay attached for diagnostics even when the category is generic.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Closed set of error categories emitted by the SDK."""

    # missing or invalid SDK configuration, or local pre-flight validation
    SDK_CONFIG = "SDK_CONFIG"
    # login succeeded but no token was returned
    AUTH_MISSING_TOKEN = "AUTH_MISSING_TOKEN"
    # MFA code is required to finish authentication
    AUTH_MFA_REQUIRED = "AUTH_MFA_REQUIRED"
    # provided MFA code was rejected
    AUTH_INVALID_MFA = "AUTH_INVALID_MFA"
    # selected organization does not exist or is not accessible
    ORG_NOT_FOUND = "ORG_NOT_FOUND"
    # generic HTTP, network, parse or abort failure
    HTTP_ERROR = "HTTP_ERROR"

    @classmethod
    def from_server(cls, value: Any) -> Optional["ErrorCode"]:
        """Return the matching code for a server-provided value, if any."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass
class ErrorContext:
    """Request details captured at the point of failure."""

    url: str
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    response_body: Any = None


class MendError(Exception):
    """Base exception for all Mend SDK errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.HTTP_ERROR,
        status: Optional[int] = None,
        details: Any = None,
        context: Optional[ErrorContext] = None,
        kind: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = ErrorCode(code)
        self.status = status
        self.details = details
        self.context = context
        # network failure classification (dns, connection, ssl, timeout, ...)
        self.kind = kind

    @property
    def is_retryable(self) -> bool:
        if self.kind is not None:
            return True
        return self.status is not None and (self.status >= 500 or self.status == 429)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.message!r}, code={self.code.value}, "
            f"status={self.status})"
        )


class ConfigurationError(MendError):
    """Invalid construction parameters or failed local validation."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, ErrorCode.SDK_CONFIG, details=details)


class AuthenticationError(MendError):
    """Login, token or MFA failure."""

    pass


class OrgNotFoundError(MendError):
    """Organization switch target is invalid or inaccessible."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        details: Any = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message, ErrorCode.ORG_NOT_FOUND, status, details, context)


class RequestAbortedError(MendError):
    """Request was aborted by caller cancellation or by its timeout."""

    def __init__(
        self,
        message: str,
        reason: str,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message,
            ErrorCode.HTTP_ERROR,
            context=context,
            kind="timeout" if reason == "timeout" else None,
        )
        self.reason = reason

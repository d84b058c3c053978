"""
Mend SDK - async client for the Mend REST API.

Handles login, MFA, organization selection and token refresh so callers
only deal with resources.
"""

from .api_clients import CancellationToken, SessionState
from .config import MendSdkConfig
from .errors import (
    AuthenticationError,
    ConfigurationError,
    ErrorCode,
    ErrorContext,
    MendError,
    OrgNotFoundError,
    RequestAbortedError,
)
from .sdk import MendSdk

__version__ = "1.0.0"

__all__ = [
    "MendSdk",
    "MendSdkConfig",
    "CancellationToken",
    "SessionState",
    "ErrorCode",
    "ErrorContext",
    "MendError",
    "ConfigurationError",
    "AuthenticationError",
    "OrgNotFoundError",
    "RequestAbortedError",
]

"""Network error classification and retry policy for the Mend SDK.

Turns ``httpx`` transport failures into ``MendError`` (``HTTP_ERROR``) with a
short ``kind`` telling DNS, SSL, connection and timeout failures apart, and
drives the client-side retry loop with exponential backoff.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import httpx

from ..errors import ErrorContext, MendError, RequestAbortedError
from .cancellation import CANCELLED

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry logic with exponential backoff.

    Attempt ``n`` (0-based) that fails waits ``initial_delay *
    backoff_multiplier ** n`` before the next one.
    """

    max_retries: int = 0
    initial_delay: float = 0.1
    backoff_multiplier: float = 2.0

    def delay_for(self, attempt: int) -> float:
        return self.initial_delay * (self.backoff_multiplier**attempt)


class NetworkErrorHandler:
    """Handles network error classification and retry logic."""

    def __init__(self) -> None:
        self._dns_error_patterns = [
            r"name.*resolution.*failed",
            r"name.*or.*service.*not.*known",
            r"nodename.*nor.*servname.*provided",
            r"temporary.*failure.*in.*name.*resolution",
            r"getaddrinfo.*failed",
        ]
        self._connection_error_patterns = [
            r"connection.*refused",
            r"connection.*reset",
            r"network.*is.*unreachable",
            r"no.*route.*to.*host",
        ]
        self._ssl_error_patterns = [
            r"ssl.*certificate.*verification.*failed",
            r"certificate.*verify.*failed",
            r"ssl.*handshake.*failed",
            r"bad.*certificate",
        ]

    def classify(self, error: Exception) -> str:
        """Return the failure kind for an ``httpx`` exception."""
        error_message = str(error).lower()

        if isinstance(error, httpx.TimeoutException):
            return "timeout"
        if isinstance(error, httpx.ConnectError):
            if self._matches(self._dns_error_patterns, error_message):
                return "dns"
            if self._matches(self._ssl_error_patterns, error_message):
                return "ssl"
            return "connection"
        if isinstance(error, httpx.NetworkError):
            return "network"
        if isinstance(error, httpx.ProtocolError):
            return "protocol"
        return "unknown"

    def classify_network_error(
        self, error: Exception, context: ErrorContext
    ) -> MendError:
        """Wrap a transport failure into an ``HTTP_ERROR`` MendError."""
        kind = self.classify(error)
        if kind == "dns":
            message = "Cannot resolve server address. Check your internet connection and server URL."
        elif kind == "ssl":
            message = "SSL certificate verification failed. Server may be using invalid certificate."
        elif kind == "timeout":
            message = "Request timed out. Check your network connection or try again later."
        elif kind == "connection":
            message = f"Cannot connect to server: {error}"
        else:
            message = str(error) or f"Network error: {type(error).__name__}"
        return MendError(message, context=context, kind=kind)

    def is_error_retryable(self, error: Exception) -> bool:
        """Every failure is retried except caller cancellation and 401.

        A 401 goes straight to the one-shot re-authentication of the request
        pipeline; resending the rejected token would only repeat it.
        """
        if isinstance(error, RequestAbortedError):
            return error.reason != CANCELLED
        return isinstance(error, MendError) and error.status != 401

    async def retry_with_backoff(
        self,
        operation: Callable[[], Awaitable[T]],
        config: RetryConfig,
    ) -> T:
        """Execute operation with retry logic and exponential backoff.

        Raises:
            The last exception once attempts are exhausted, or immediately
            when the failure is not retryable.
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except MendError as e:
                if attempt >= config.max_retries or not self.is_error_retryable(e):
                    raise

                delay = config.delay_for(attempt)
                logger.debug(
                    f"Attempt {attempt + 1} failed ({e.message}); retrying in {delay:.3f}s"
                )
                await asyncio.sleep(delay)
                attempt += 1

    @staticmethod
    def _matches(patterns, message: str) -> bool:
        return any(re.search(pattern, message) for pattern in patterns)

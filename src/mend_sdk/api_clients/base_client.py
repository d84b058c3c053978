"""Base Mend Remote API Client.

Provides the authenticated request pipeline shared by every resource client:
token injection, per-attempt timeout and cancellation, client-side retry
with exponential backoff and one-shot re-authentication on 401.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import MendSdkConfig
from ..errors import ConfigurationError, MendError
from .cancellation import CancellationToken, cancel_scope
from .http_transport import HttpTransport, QueryParams
from .network_error_handler import NetworkErrorHandler, RetryConfig
from .session_manager import SessionManager, SessionState

logger = logging.getLogger(__name__)


class MendRemoteAPIClient:
    """Base API client with authentication and common HTTP functionality."""

    def __init__(
        self,
        config: Optional[MendSdkConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **options: Any,
    ):
        """Initialize the client.

        Either pass a ready ``MendSdkConfig`` or the same fields as keyword
        arguments (``api_endpoint``, ``email``, ``password``, ...).

        Args:
            config: Validated session configuration
            transport: Optional httpx transport (tests, proxies)
            **options: Configuration fields when ``config`` is not given

        Raises:
            ConfigurationError: If the configuration is missing or invalid
        """
        if config is not None and options:
            raise ConfigurationError(
                "Pass either a MendSdkConfig or keyword options, not both"
            )
        self.config = config if config is not None else MendSdkConfig.create(**options)

        self.transport = HttpTransport(
            api_endpoint=self.config.api_endpoint,
            default_headers=self.config.default_headers,
            transport=transport,
        )
        self.session_manager = SessionManager(self.config, self.transport)

        self._network_error_handler = NetworkErrorHandler()
        self._retry_config = RetryConfig(
            max_retries=self.config.retry_attempts,
            initial_delay=self.config.retry_backoff,
        )

    @property
    def server_url(self) -> str:
        return self.config.api_endpoint

    @property
    def session_state(self) -> SessionState:
        return self.session_manager.state

    @property
    def active_org_id(self) -> Optional[int]:
        return self.session_manager.org_context.active_org_id

    @property
    def available_orgs(self) -> Optional[List[Dict[str, Any]]]:
        return self.session_manager.org_context.available_orgs

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Optional[QueryParams] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """Make an authenticated request and return the parsed JSON body.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            path: API path appended to the endpoint, e.g. ``/user/me``
            body: JSON-serializable request body
            query: Query parameters; list values repeat the key
            cancel_token: Optional token that aborts the in-flight call

        Returns:
            Parsed JSON, or ``None`` when the server sent no body

        Raises:
            MendError: On any failure; a second consecutive 401 is raised
                as-is with code HTTP_ERROR
        """
        await self.session_manager.ensure_valid(cancel_token)
        rejected_token = self.session_manager.credential.token

        try:
            return await self._send_with_retry(method, path, body, query, cancel_token)
        except MendError as e:
            if e.status != 401:
                raise

        logger.warning(
            f"Received 401 for {method.upper()} {path}, re-authenticating once"
        )
        self.session_manager.invalidate(rejected_token)
        await self.session_manager.ensure_valid(cancel_token)
        return await self._send_with_retry(method, path, body, query, cancel_token)

    async def _send_with_retry(
        self,
        method: str,
        path: str,
        body: Any,
        query: Optional[QueryParams],
        cancel_token: Optional[CancellationToken],
    ) -> Any:
        async def attempt() -> Any:
            with cancel_scope(self.config.request_timeout, cancel_token) as scope:
                return await self.transport.send(
                    method,
                    path,
                    body,
                    query,
                    self.session_manager.auth_headers(),
                    scope,
                )

        return await self._network_error_handler.retry_with_backoff(
            attempt, self._retry_config
        )

    async def submit_mfa_code(
        self, code: Any, cancel_token: Optional[CancellationToken] = None
    ) -> None:
        """Submit an MFA code to complete authentication.

        Raises:
            AuthenticationError: AUTH_INVALID_MFA when the code is rejected
        """
        await self.session_manager.submit_mfa_code(code, cancel_token)

    async def switch_org(
        self, org_id: int, cancel_token: Optional[CancellationToken] = None
    ) -> None:
        """Make ``org_id`` the active organization for subsequent calls.

        Raises:
            OrgNotFoundError: If the organization is unknown or inaccessible
        """
        await self.session_manager.ensure_valid(cancel_token)
        await self.session_manager.switch_org(org_id, cancel_token)

    def logout(self) -> None:
        """Forget the current token; the next request logs in again."""
        self.session_manager.logout()

    async def close(self) -> None:
        """Close the HTTP session and drop the credential."""
        await self.transport.close()
        self.session_manager.logout()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

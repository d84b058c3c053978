"""Session lifecycle for the Mend SDK.

Owns the access token, its expiry, the organization context and the
login -> MFA -> organization-switch sequence. Re-authentication is
single-flight: concurrent callers that find the token stale queue on one
FIFO mutex and re-check validity inside it, so only the first of them
talks to ``/session``.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..config import MendSdkConfig
from ..errors import (
    AuthenticationError,
    ErrorCode,
    MendError,
    OrgNotFoundError,
    RequestAbortedError,
)
from .cancellation import CancellationToken, cancel_scope
from .http_transport import ACCESS_TOKEN_HEADER, HttpTransport
from .mutex import Mutex

logger = logging.getLogger(__name__)

Json = Dict[str, Any]


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"
    LOGGED_OUT = "logged_out"


@dataclass(frozen=True)
class Credential:
    """Access token plus the absolute instant (epoch seconds) it expires."""

    token: Optional[str] = None
    expires_at: float = 0.0

    @classmethod
    def issue(cls, token: str, ttl_minutes: float, now: float) -> "Credential":
        return cls(token=token, expires_at=now + ttl_minutes * 60)

    def is_valid(self, now: float) -> bool:
        return bool(self.token) and now < self.expires_at


@dataclass
class OrganizationContext:
    active_org_id: Optional[int] = None
    available_orgs: Optional[List[Json]] = None


def extract_orgs(response: Any) -> Optional[List[Json]]:
    """Pull the organization list out of a login or ``GET /org`` body."""
    if not isinstance(response, Mapping):
        return None
    payload = response.get("payload")
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping) and isinstance(payload.get("orgs"), list):
        return payload["orgs"]
    return None


def org_identifier(org: Mapping[str, Any]) -> Optional[int]:
    # some endpoints return orgId instead of id
    value = org.get("id", org.get("orgId"))
    return value if isinstance(value, int) and not isinstance(value, bool) else None


class SessionManager:
    """Credential owner and authentication state machine."""

    def __init__(
        self,
        config: MendSdkConfig,
        transport: HttpTransport,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.transport = transport
        self.clock = clock
        self.credential = Credential()
        self.org_context = OrganizationContext()
        self._pending_mfa_code: Optional[Union[str, int]] = config.mfa_code
        self._auth_mutex = Mutex()
        self._state = SessionState.UNAUTHENTICATED

    @property
    def state(self) -> SessionState:
        if self._state is SessionState.AUTHENTICATED and not self.is_valid():
            return SessionState.EXPIRED
        return self._state

    @property
    def pending_mfa_code(self) -> Optional[Union[str, int]]:
        return self._pending_mfa_code

    def is_valid(self) -> bool:
        return self.credential.is_valid(self.clock())

    def auth_headers(self) -> Dict[str, str]:
        if self.credential.token:
            return {ACCESS_TOKEN_HEADER: self.credential.token}
        return {}

    async def ensure_valid(self, cancel_token: Optional[CancellationToken] = None) -> None:
        """Make sure a non-expired token is held, logging in at most once."""
        if self.is_valid():
            return

        async def refresh() -> None:
            # another waiter may have refreshed while we were queued
            if self.is_valid():
                logger.debug("Token refreshed by a concurrent caller, reusing it")
                return
            await self.login(cancel_token)

        logger.debug("Token missing or expired, acquiring authentication lock")
        await self._auth_mutex.lock(refresh)

    async def login(self, cancel_token: Optional[CancellationToken] = None) -> None:
        """Post the identity to ``/session`` and finish the login sequence.

        Raises:
            AuthenticationError: AUTH_MFA_REQUIRED or AUTH_MISSING_TOKEN
            MendError: Any other transport or server failure
        """
        self._state = SessionState.AUTHENTICATING
        try:
            try:
                response = await self._send(
                    "POST",
                    "/session",
                    {"email": self.config.email, "password": self.config.password},
                    cancel_token,
                    authenticated=False,
                )
            except RequestAbortedError:
                raise
            except MendError as e:
                if not self._signals_mfa(e):
                    raise
                if self._pending_mfa_code is None:
                    raise AuthenticationError(
                        "MFA code required to complete login",
                        ErrorCode.AUTH_MFA_REQUIRED,
                        e.status,
                        e.details,
                        e.context,
                    ) from e
                logger.debug("Login requires MFA, submitting configured code")
                await self.submit_mfa_code(self._pending_mfa_code, cancel_token)
                return

            if isinstance(response, Mapping) and response.get("token"):
                await self.complete_login(response, cancel_token)
                return

            if self._pending_mfa_code is not None:
                logger.debug("No token in login response, submitting configured MFA code")
                await self.submit_mfa_code(self._pending_mfa_code, cancel_token)
                return

            raise AuthenticationError(
                "Token not returned by /session", ErrorCode.AUTH_MISSING_TOKEN
            )
        finally:
            if self._state is SessionState.AUTHENTICATING:
                self._state = (
                    SessionState.AUTHENTICATED
                    if self.is_valid()
                    else SessionState.UNAUTHENTICATED
                )

    async def complete_login(
        self, response: Mapping[str, Any], cancel_token: Optional[CancellationToken] = None
    ) -> None:
        """Store the credential and settle the organization context."""
        token = response.get("token")
        if not token or not isinstance(token, str):
            raise AuthenticationError(
                "Token not returned by /session", ErrorCode.AUTH_MISSING_TOKEN
            )

        credential = Credential.issue(token, self.config.token_ttl, self.clock())
        logger.info(f"Authenticated as {self.config.email}")

        orgs = extract_orgs(response)
        if orgs is not None:
            self.org_context.available_orgs = orgs

        # the new token is published only once the org context is settled
        if self.config.org_id is not None:
            await self.switch_org(self.config.org_id, cancel_token, credential.token)
        elif self.config.auto_select_single_org:
            await self._select_single_org(cancel_token, credential.token)

        self.credential = credential
        self._state = SessionState.AUTHENTICATED

    async def submit_mfa_code(
        self, code: Union[str, int], cancel_token: Optional[CancellationToken] = None
    ) -> None:
        """Submit an MFA code with whatever token is currently held.

        Raises:
            AuthenticationError: AUTH_INVALID_MFA when the server rejects the code
        """
        try:
            response = await self._send(
                "PUT", "/session/mfa", {"mfaCode": code}, cancel_token
            )
        except RequestAbortedError:
            raise
        except MendError as e:
            if e.status is None:
                raise
            raise AuthenticationError(
                f"MFA code rejected: {e.message}",
                ErrorCode.AUTH_INVALID_MFA,
                e.status,
                e.details,
                e.context,
            ) from e

        self._pending_mfa_code = None
        logger.info("MFA verification completed")
        await self.complete_login(response if isinstance(response, Mapping) else {}, cancel_token)

    async def switch_org(
        self,
        org_id: int,
        cancel_token: Optional[CancellationToken] = None,
        token: Optional[str] = None,
    ) -> None:
        """Switch the session to ``org_id``.

        Uses ``token`` when given, otherwise the token already held.

        Raises:
            OrgNotFoundError: When the server answers 404
        """
        try:
            await self._send(
                "PUT", f"/session/org/{org_id}", {}, cancel_token, token=token
            )
        except MendError as e:
            if e.status != 404:
                raise
            raise OrgNotFoundError(
                f"Organization {org_id} not found or not accessible",
                e.status,
                e.details,
                e.context,
            ) from e
        self.org_context.active_org_id = org_id
        logger.info(f"Switched to organization {org_id}")

    async def list_orgs(
        self,
        cancel_token: Optional[CancellationToken] = None,
        token: Optional[str] = None,
    ) -> Any:
        """``GET /org`` outside the request pipeline; caches the returned list."""
        response = await self._send("GET", "/org", None, cancel_token, token=token)
        orgs = extract_orgs(response)
        if orgs is not None:
            self.org_context.available_orgs = orgs
        return response

    def invalidate(self, token: Optional[str] = None) -> None:
        """Drop the credential so the next ``ensure_valid`` logs in again.

        When ``token`` is given, only that token is dropped; a newer one
        obtained by a concurrent caller is kept.
        """
        if token is not None and self.credential.token != token:
            return
        self.credential = Credential()
        self._state = SessionState.EXPIRED

    def logout(self) -> None:
        """Forget the credential locally; no network call is made."""
        self.credential = Credential()
        self._state = SessionState.LOGGED_OUT
        logger.info("Logged out")

    async def _select_single_org(
        self, cancel_token: Optional[CancellationToken], token: Optional[str]
    ) -> None:
        if self.org_context.available_orgs is None:
            await self.list_orgs(cancel_token, token)
        orgs = self.org_context.available_orgs or []
        if len(orgs) != 1 or not isinstance(orgs[0], Mapping):
            return
        org_id = org_identifier(orgs[0])
        if org_id is not None:
            await self.switch_org(org_id, cancel_token, token)

    def _signals_mfa(self, error: MendError) -> bool:
        if error.status != 401:
            return False
        if error.code is ErrorCode.AUTH_MFA_REQUIRED:
            return True
        details = error.details
        if isinstance(details, Mapping) and (
            details.get("mfaRequired") or details.get("mfa_required")
        ):
            return True
        return "mfa" in error.message.lower()

    async def _send(
        self,
        method: str,
        path: str,
        body: Any,
        cancel_token: Optional[CancellationToken],
        authenticated: bool = True,
        token: Optional[str] = None,
    ) -> Any:
        if token is not None:
            headers = {ACCESS_TOKEN_HEADER: token}
        else:
            headers = self.auth_headers() if authenticated else {}
        with cancel_scope(self.config.request_timeout, cancel_token) as scope:
            return await self.transport.send(
                method, path, body, headers=headers, cancel_token=scope
            )

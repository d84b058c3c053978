"""User API Client for the Mend REST API.

Covers user lookup, existence checks by email or phone, and phone number
validation.
"""

import logging
from typing import Any, Dict, Optional

from ..errors import ConfigurationError
from .base_client import MendRemoteAPIClient
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)


class UsersAPIClient(MendRemoteAPIClient):
    """Client for user operations."""

    async def get_user(
        self, user_id: int, cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        return await self.request("GET", f"/user/{user_id}", cancel_token=cancel_token)

    async def check_user_exists(
        self, payload: Dict[str, Any], cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        """Check whether a user exists for an email address or phone number.

        Args:
            payload: Body with ``email-or-phone`` and optionally ``orgId``
            cancel_token: Optional cancellation token

        Raises:
            ConfigurationError: If ``email-or-phone`` is missing
        """
        if not payload or not payload.get("email-or-phone"):
            raise ConfigurationError("'email-or-phone' is required")
        return await self.request(
            "PUT", "/user/exists", payload, cancel_token=cancel_token
        )

    async def lookup_phone_numbers(
        self, payload: Dict[str, Any], cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        """Validate phone numbers and report whether each one is mobile.

        Raises:
            ConfigurationError: If ``numbers`` is missing or empty
        """
        numbers = (payload or {}).get("numbers")
        if not isinstance(numbers, (list, tuple)) or not numbers:
            raise ConfigurationError("'numbers' must be a non-empty list")
        return await self.request(
            "PUT",
            "/phone/lookup",
            {**payload, "numbers": list(numbers)},
            cancel_token=cancel_token,
        )

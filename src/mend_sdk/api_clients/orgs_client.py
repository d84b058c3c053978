"""Organization API Client for the Mend REST API."""

import logging
from typing import Any, Optional

from .base_client import MendRemoteAPIClient
from .cancellation import CancellationToken
from .session_manager import extract_orgs

logger = logging.getLogger(__name__)


class OrgsAPIClient(MendRemoteAPIClient):
    """Client for organization lookups."""

    async def list_orgs(self, cancel_token: Optional[CancellationToken] = None) -> Any:
        """List organizations available to the authenticated identity.

        The returned list is also cached in ``available_orgs``.
        """
        response = await self.request("GET", "/org", cancel_token=cancel_token)
        orgs = extract_orgs(response)
        if orgs is not None:
            self.session_manager.org_context.available_orgs = orgs
        return response

    async def get_org(
        self, org_id: int, cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        return await self.request("GET", f"/org/{org_id}", cancel_token=cancel_token)

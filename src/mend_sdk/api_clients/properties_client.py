"""Property API Client for the Mend REST API."""

import logging
from typing import Any, Mapping, Optional

from .base_client import MendRemoteAPIClient
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)


class PropertiesAPIClient(MendRemoteAPIClient):
    """Client for organization properties (feature switches and settings)."""

    async def get_properties(
        self, cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        return await self.request("GET", "/property", cancel_token=cancel_token)

    async def get_property(
        self, key: str, cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        """Return a single property value.

        Returns ``None`` when the property is not set or the response does
        not have the ``payload.properties`` mapping shape.
        """
        response = await self.get_properties(cancel_token)
        payload = response.get("payload") if isinstance(response, Mapping) else None
        properties = payload.get("properties") if isinstance(payload, Mapping) else None
        if not isinstance(properties, Mapping):
            logger.debug(f"Unexpected /property response shape, {key} treated as unset")
            return None
        return properties.get(key)

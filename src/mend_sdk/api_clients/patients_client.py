"""Patient API Client for the Mend REST API.

The ``force`` variants of create and update go to a dedicated ``/force``
path rather than carrying a query flag.
"""

import logging
from typing import Any, Dict, Optional

from .base_client import MendRemoteAPIClient
from .cancellation import CancellationToken
from .http_transport import QueryParams

logger = logging.getLogger(__name__)


class PatientsAPIClient(MendRemoteAPIClient):
    """Client for patient records."""

    async def search_patients(
        self,
        query: Optional[QueryParams] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        return await self.request(
            "GET", "/patient", query=query or {}, cancel_token=cancel_token
        )

    async def get_patient(
        self, patient_id: int, cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        return await self.request(
            "GET", f"/patient/{patient_id}", cancel_token=cancel_token
        )

    async def get_patient_assessment_scores(
        self, patient_id: int, cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        return await self.request(
            "GET", f"/patient/{patient_id}/assessment-scores", cancel_token=cancel_token
        )

    async def create_patient(
        self,
        payload: Dict[str, Any],
        force: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """Create a patient; ``force`` skips server-side duplicate checks."""
        path = "/patient/force" if force else "/patient"
        return await self.request("POST", path, payload, cancel_token=cancel_token)

    async def update_patient(
        self,
        patient_id: int,
        payload: Dict[str, Any],
        force: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        path = f"/patient/{patient_id}/force" if force else f"/patient/{patient_id}"
        return await self.request("PUT", path, payload, cancel_token=cancel_token)

    async def delete_patient(
        self, patient_id: int, cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        return await self.request(
            "DELETE", f"/patient/{patient_id}", cancel_token=cancel_token
        )

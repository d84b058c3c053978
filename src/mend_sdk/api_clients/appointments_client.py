"""Appointment API Client for the Mend REST API.

Appointment creation validates required fields locally, marks the request
as optimized and, unless the caller set ``approved`` explicitly, derives it
from the organization's auto-approve property.
"""

import logging
from typing import Any, Dict, Optional

from ..errors import ConfigurationError, MendError, RequestAbortedError
from .cancellation import CANCELLED, CancellationToken
from .properties_client import PropertiesAPIClient

logger = logging.getLogger(__name__)

REQUIRED_APPOINTMENT_FIELDS = (
    "patientId",
    "providerId",
    "appointmentTypeId",
    "startDate",
    "endDate",
)

AUTO_APPROVE_PROPERTY = "scheduling.patients.autoApprove"


def _as_flag(value: Any) -> int:
    if isinstance(value, str):
        return 1 if value.strip().lower() in ("1", "true", "yes") else 0
    return 1 if value else 0


class AppointmentsAPIClient(PropertiesAPIClient):
    """Client for appointments and scheduling lookups."""

    async def get_appointment(
        self, appointment_id: int, cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        return await self.request(
            "GET", f"/appointment/{appointment_id}", cancel_token=cancel_token
        )

    async def create_appointment(
        self, payload: Dict[str, Any], cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        """Create an appointment.

        Args:
            payload: Appointment fields; ``patientId``, ``providerId``,
                ``appointmentTypeId``, ``startDate`` and ``endDate`` are required
            cancel_token: Optional cancellation token

        Raises:
            ConfigurationError: If required fields are missing (no request is sent)
        """
        payload = dict(payload or {})
        missing = [
            name for name in REQUIRED_APPOINTMENT_FIELDS if payload.get(name) in (None, "")
        ]
        if missing:
            raise ConfigurationError(f"Missing required fields: {', '.join(missing)}")

        body: Dict[str, Any] = {"optimized": 1, **payload}
        if "approved" not in payload:
            approved = await self._auto_approve_flag(cancel_token)
            if approved is not None:
                body["approved"] = approved

        return await self.request("POST", "/appointment", body, cancel_token=cancel_token)

    async def list_available_slots(
        self,
        provider_id: int,
        appointment_type_id: int,
        start_date: str,
        limit: int = 10,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        query = {
            "providerId": provider_id,
            "appointmentTypeId": appointment_type_id,
            "startDate": start_date,
            "limit": limit,
        }
        return await self.request(
            "GET", "/appointment/available-slots", query=query, cancel_token=cancel_token
        )

    async def get_appointment_type(
        self, appointment_type_id: int, cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        return await self.request(
            "GET", f"/appointment-type/{appointment_type_id}", cancel_token=cancel_token
        )

    async def _auto_approve_flag(
        self, cancel_token: Optional[CancellationToken]
    ) -> Optional[int]:
        try:
            value = await self.get_property(AUTO_APPROVE_PROPERTY, cancel_token)
        except RequestAbortedError as e:
            if e.reason == CANCELLED:
                raise
            logger.warning(f"Auto-approve lookup timed out, leaving approved unset: {e}")
            return None
        except MendError as e:
            logger.warning(f"Auto-approve lookup failed, leaving approved unset: {e}")
            return None
        if value is None:
            return None
        return _as_flag(value)

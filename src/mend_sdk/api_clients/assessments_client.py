"""Assessment API Client for the Mend REST API."""

import logging
from typing import Any, Dict, Optional, Sequence, Union

from ..errors import ConfigurationError
from .base_client import MendRemoteAPIClient
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

# status filter -> column conditions understood by /assessment-session
STATUS_FILTERS: Dict[str, Dict[str, str]] = {
    "outstanding": {"completed": "NULL"},
    "awaitingReview": {"completed": "NOT NULL", "reviewed": "NULL"},
}


class AssessmentsAPIClient(MendRemoteAPIClient):
    """Client for assessment sessions."""

    async def list_assessment_sessions(
        self,
        active_subject_ids: Union[int, Sequence[int]],
        status: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """List assessment sessions for one or more subjects.

        Args:
            active_subject_ids: Patient id or ids; several ids repeat the parameter
            status: ``outstanding`` or ``awaitingReview`` to filter, None for all
            page: Page number
            limit: Page size
            cancel_token: Optional cancellation token

        Raises:
            ConfigurationError: On an unknown status filter
        """
        if status is not None and status not in STATUS_FILTERS:
            raise ConfigurationError(
                f"Unknown assessment status {status!r}; "
                f"expected one of {', '.join(STATUS_FILTERS)}"
            )

        ids = (
            [active_subject_ids]
            if isinstance(active_subject_ids, int)
            else list(active_subject_ids)
        )
        query: Dict[str, Any] = {"activeSubjectIds": ids}
        if status is not None:
            query.update(STATUS_FILTERS[status])
        if page is not None:
            query["page"] = page
        if limit is not None:
            query["limit"] = limit

        return await self.request(
            "GET", "/assessment-session", query=query, cancel_token=cancel_token
        )

    async def get_assessment_session(
        self, session_id: int, cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        return await self.request(
            "GET", f"/assessment-session/{session_id}", cancel_token=cancel_token
        )

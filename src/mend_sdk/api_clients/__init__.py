"""API Client Abstractions for the Mend REST API.

Every resource client builds on ``MendRemoteAPIClient``, which owns the
session and the authenticated request pipeline.
"""

from .base_client import MendRemoteAPIClient
from .cancellation import CancellationToken, cancel_scope
from .http_transport import ACCESS_TOKEN_HEADER, HttpTransport, QueryParams
from .mutex import Mutex
from .network_error_handler import NetworkErrorHandler, RetryConfig
from .session_manager import (
    Credential,
    OrganizationContext,
    SessionManager,
    SessionState,
)
from .appointments_client import AppointmentsAPIClient
from .assessments_client import AssessmentsAPIClient
from .orgs_client import OrgsAPIClient
from .patients_client import PatientsAPIClient
from .properties_client import PropertiesAPIClient
from .users_client import UsersAPIClient

__all__ = [
    # Base client
    "MendRemoteAPIClient",
    # Session and transport
    "SessionManager",
    "SessionState",
    "Credential",
    "OrganizationContext",
    "HttpTransport",
    "QueryParams",
    "ACCESS_TOKEN_HEADER",
    "Mutex",
    "CancellationToken",
    "cancel_scope",
    "NetworkErrorHandler",
    "RetryConfig",
    # Resource clients
    "OrgsAPIClient",
    "UsersAPIClient",
    "PatientsAPIClient",
    "AppointmentsAPIClient",
    "PropertiesAPIClient",
    "AssessmentsAPIClient",
]

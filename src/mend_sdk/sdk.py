"""Mend SDK facade combining every resource client."""

from .api_clients import (
    AppointmentsAPIClient,
    AssessmentsAPIClient,
    OrgsAPIClient,
    PatientsAPIClient,
    UsersAPIClient,
)


class MendSdk(
    OrgsAPIClient,
    UsersAPIClient,
    PatientsAPIClient,
    AppointmentsAPIClient,
    AssessmentsAPIClient,
):
    """Authenticated client for the Mend REST API.

    Example::

        async with MendSdk(
            api_endpoint="https://api.mend.com/v2",
            email="svc@example.com",
            password="secret",
            org_id=123,
        ) as sdk:
            user = await sdk.get_user(1)
    """

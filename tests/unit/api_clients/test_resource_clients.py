"""Tests for the resource wrappers exposed by MendSdk."""

import asyncio

import pytest

from mend_sdk.api_clients.cancellation import CancellationToken
from mend_sdk.errors import ConfigurationError, ErrorCode, MendError, RequestAbortedError

APPOINTMENT = {
    "patientId": 1,
    "providerId": 2,
    "appointmentTypeId": 3,
    "startDate": "2025-06-10T09:00:00Z",
    "endDate": "2025-06-10T09:30:00Z",
}


class TestOrgsAndUsers:
    async def test_list_orgs_caches_result(self, make_sdk, fake_server):
        fake_server.orgs = [{"id": 1}, {"id": 2}]
        sdk = make_sdk()

        result = await sdk.list_orgs()

        assert result == {"payload": {"orgs": [{"id": 1}, {"id": 2}]}}
        assert sdk.available_orgs == [{"id": 1}, {"id": 2}]
        assert fake_server.count("GET", "/org") == 1

    async def test_list_orgs_recovers_from_rejected_token(self, make_sdk, fake_server):
        sdk = make_sdk()
        await sdk.get_user(1)
        fake_server.reject_tokens.add("token-1")

        result = await sdk.list_orgs()

        assert result["payload"]["orgs"] == [{"id": 123, "name": "Test Organization"}]
        assert fake_server.count("POST", "/session") == 2
        assert [c.token for c in fake_server.calls_to("GET", "/org")] == ["token-1", "token-2"]

    async def test_get_org(self, make_sdk):
        sdk = make_sdk()

        result = await sdk.get_org(123)

        assert result["payload"]["id"] == 123

    async def test_get_user(self, make_sdk):
        sdk = make_sdk()

        assert await sdk.get_user(7) == {"payload": {"id": 7, "name": "Test User 7"}}

    async def test_check_user_exists(self, make_sdk, fake_server):
        sdk = make_sdk()

        result = await sdk.check_user_exists(
            {"email-or-phone": "exists@example.com", "orgId": 123}
        )

        assert result["payload"]["user"]["exists"] == 1
        assert fake_server.calls_to("PUT", "/user/exists")[0].body == {
            "email-or-phone": "exists@example.com",
            "orgId": 123,
        }

    async def test_check_user_exists_requires_identifier(self, make_sdk, fake_server):
        sdk = make_sdk()

        with pytest.raises(ConfigurationError):
            await sdk.check_user_exists({"orgId": 123})

        assert fake_server.calls == []

    async def test_lookup_phone_numbers(self, make_sdk, fake_server):
        sdk = make_sdk()

        result = await sdk.lookup_phone_numbers({"numbers": ["5551234567", "5557654321"]})

        numbers = result["payload"]["numbers"]
        assert [n["isMobile"] for n in numbers] == [1, 0]

    @pytest.mark.parametrize("payload", [{}, {"numbers": []}, {"numbers": "555"}])
    async def test_lookup_phone_numbers_requires_list(self, make_sdk, fake_server, payload):
        sdk = make_sdk()

        with pytest.raises(ConfigurationError) as exc_info:
            await sdk.lookup_phone_numbers(payload)

        assert exc_info.value.code is ErrorCode.SDK_CONFIG
        assert fake_server.calls == []


class TestPatients:
    async def test_search_patients_passes_query(self, make_sdk, fake_server):
        sdk = make_sdk()

        result = await sdk.search_patients({"search": "doe", "limit": 5})

        assert len(result["payload"]) == 2
        assert fake_server.calls_to("GET", "/patient")[0].query == [
            ("search", "doe"),
            ("limit", "5"),
        ]

    async def test_get_patient_and_scores(self, make_sdk, fake_server):
        sdk = make_sdk()

        patient = await sdk.get_patient(5)
        scores = await sdk.get_patient_assessment_scores(5)

        assert patient["payload"]["id"] == 5
        assert scores["payload"]["patientId"] == 5
        assert fake_server.count("GET", "/patient/5/assessment-scores") == 1

    async def test_create_patient(self, make_sdk, fake_server):
        sdk = make_sdk()

        await sdk.create_patient({"firstName": "Ann"})
        await sdk.create_patient({"firstName": "Ann"}, force=True)

        assert fake_server.count("POST", "/patient") == 1
        assert fake_server.count("POST", "/patient/force") == 1

    async def test_update_patient(self, make_sdk, fake_server):
        sdk = make_sdk()

        updated = await sdk.update_patient(1, {"lastName": "Doe"})
        await sdk.update_patient(1, {"lastName": "Doe"}, force=True)

        assert updated == {"payload": {"id": 1, "lastName": "Doe"}}
        assert fake_server.count("PUT", "/patient/1/force") == 1

    async def test_update_missing_patient(self, make_sdk):
        sdk = make_sdk()

        with pytest.raises(MendError) as exc_info:
            await sdk.update_patient(99, {"lastName": "Doe"})

        assert exc_info.value.status == 404
        assert exc_info.value.code is ErrorCode.HTTP_ERROR

    async def test_delete_patient(self, make_sdk, fake_server):
        sdk = make_sdk()

        assert await sdk.delete_patient(1) is None
        assert fake_server.count("DELETE", "/patient/1") == 1


class TestProperties:
    async def test_get_property(self, make_sdk):
        sdk = make_sdk()

        assert await sdk.get_property("scheduling.patients.autoApprove") == 1
        assert await sdk.get_property("unknown.key") is None


    @pytest.mark.parametrize("properties", [["x"], "x", None])
    async def test_get_property_tolerates_unexpected_shape(
        self, make_sdk, fake_server, properties
    ):
        fake_server.properties = properties
        sdk = make_sdk()

        assert await sdk.get_property("scheduling.patients.autoApprove") is None


class TestAppointments:
    async def test_get_appointment(self, make_sdk):
        sdk = make_sdk()

        result = await sdk.get_appointment(9)

        assert result["payload"]["id"] == 9

    async def test_create_uses_auto_approve_property(self, make_sdk, fake_server):
        sdk = make_sdk()

        await sdk.create_appointment(APPOINTMENT)

        body = fake_server.calls_to("POST", "/appointment")[0].body
        assert body == {"optimized": 1, "approved": 1, **APPOINTMENT}
        assert fake_server.count("GET", "/property") == 1

    async def test_create_with_auto_approve_disabled(self, make_sdk, fake_server):
        fake_server.properties = {"scheduling.patients.autoApprove": "false"}
        sdk = make_sdk()

        await sdk.create_appointment(APPOINTMENT)

        assert fake_server.calls_to("POST", "/appointment")[0].body["approved"] == 0

    async def test_explicit_approved_skips_lookup(self, make_sdk, fake_server):
        sdk = make_sdk()

        await sdk.create_appointment({**APPOINTMENT, "approved": 0})

        assert fake_server.calls_to("POST", "/appointment")[0].body["approved"] == 0
        assert fake_server.count("GET", "/property") == 0

    async def test_unset_property_leaves_approved_out(self, make_sdk, fake_server):
        fake_server.properties = {}
        sdk = make_sdk()

        await sdk.create_appointment(APPOINTMENT)

        assert "approved" not in fake_server.calls_to("POST", "/appointment")[0].body

    async def test_property_failure_does_not_block_creation(self, make_sdk, fake_server):
        fake_server.properties_down = True
        sdk = make_sdk()

        result = await sdk.create_appointment(APPOINTMENT)

        assert result["payload"]["id"] == 42
        assert "approved" not in fake_server.calls_to("POST", "/appointment")[0].body

    async def test_malformed_properties_do_not_block_creation(self, make_sdk, fake_server):
        fake_server.properties = ["x"]
        sdk = make_sdk()

        result = await sdk.create_appointment(APPOINTMENT)

        assert result["payload"]["id"] == 42
        assert "approved" not in fake_server.calls_to("POST", "/appointment")[0].body

    async def test_missing_required_fields(self, make_sdk, fake_server):
        sdk = make_sdk()
        payload = {k: v for k, v in APPOINTMENT.items() if k not in ("providerId", "endDate")}

        with pytest.raises(ConfigurationError) as exc_info:
            await sdk.create_appointment(payload)

        assert exc_info.value.message == "Missing required fields: providerId, endDate"
        assert fake_server.calls == []

    async def test_cancellation_during_lookup_is_raised(self, make_sdk, fake_server):
        fake_server.login_delay = 0.2
        sdk = make_sdk()
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.02, token.cancel)

        with pytest.raises(RequestAbortedError) as exc_info:
            await sdk.create_appointment(APPOINTMENT, cancel_token=token)

        assert exc_info.value.reason == "cancelled"
        assert fake_server.count("POST", "/appointment") == 0

    async def test_list_available_slots(self, make_sdk, fake_server):
        sdk = make_sdk()

        result = await sdk.list_available_slots(2, 3, "2025-06-10")

        assert result["payload"][0]["providerId"] == 2
        assert fake_server.calls_to("GET", "/appointment/available-slots")[0].query == [
            ("providerId", "2"),
            ("appointmentTypeId", "3"),
            ("startDate", "2025-06-10"),
            ("limit", "10"),
        ]

    async def test_get_appointment_type(self, make_sdk):
        sdk = make_sdk()

        result = await sdk.get_appointment_type(3)

        assert result["payload"]["durationMinutes"] == 30


class TestAssessments:
    async def test_outstanding_filter(self, make_sdk, fake_server):
        sdk = make_sdk()

        result = await sdk.list_assessment_sessions([1, 2], status="outstanding")

        assert result["payload"]["sessions"][0]["completed"] is None
        assert fake_server.calls_to("GET", "/assessment-session")[0].query == [
            ("activeSubjectIds", "1"),
            ("activeSubjectIds", "2"),
            ("completed", "NULL"),
        ]

    async def test_awaiting_review_filter(self, make_sdk, fake_server):
        sdk = make_sdk()

        result = await sdk.list_assessment_sessions(1, status="awaitingReview", page=2, limit=20)

        assert result["payload"]["sessions"][0]["id"] == 2
        assert fake_server.calls_to("GET", "/assessment-session")[0].query == [
            ("activeSubjectIds", "1"),
            ("completed", "NOT NULL"),
            ("reviewed", "NULL"),
            ("page", "2"),
            ("limit", "20"),
        ]

    async def test_unknown_status(self, make_sdk, fake_server):
        sdk = make_sdk()

        with pytest.raises(ConfigurationError):
            await sdk.list_assessment_sessions(1, status="finished")

        assert fake_server.calls == []

    async def test_get_assessment_session(self, make_sdk):
        sdk = make_sdk()

        result = await sdk.get_assessment_session(4)

        assert result["payload"]["session"]["id"] == 4

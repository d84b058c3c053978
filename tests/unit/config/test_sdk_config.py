"""Tests for MendSdkConfig validation and environment loading."""

import logging

import pytest
from pydantic import ValidationError

from mend_sdk.config import MendSdkConfig
from mend_sdk.errors import ConfigurationError, ErrorCode

VALID = {
    "api_endpoint": "https://api.mend.com/v2",
    "email": "svc@example.com",
    "password": "secret",
}


class TestCreate:
    def test_defaults(self):
        config = MendSdkConfig.create(**VALID)

        assert config.token_ttl == 55
        assert config.request_timeout == 30.0
        assert config.retry_attempts == 0
        assert config.org_id is None
        assert config.mfa_code is None
        assert config.auto_select_single_org is False
        assert config.environment == "production"

    @pytest.mark.parametrize("missing", ["api_endpoint", "email", "password"])
    def test_required_fields(self, missing):
        values = {**VALID, missing: ""}

        with pytest.raises(ConfigurationError) as exc_info:
            MendSdkConfig.create(**values)

        assert exc_info.value.code is ErrorCode.SDK_CONFIG
        assert f"missing: {missing}" in exc_info.value.message

    def test_all_missing_fields_are_listed(self):
        with pytest.raises(ConfigurationError) as exc_info:
            MendSdkConfig.create()

        assert "missing: api_endpoint, email, password" in exc_info.value.message

    def test_trailing_slash_is_stripped(self):
        config = MendSdkConfig.create(**{**VALID, "api_endpoint": "https://api.mend.com/v2/"})

        assert config.api_endpoint == "https://api.mend.com/v2"

    def test_blank_mfa_code_means_none(self):
        assert MendSdkConfig.create(**VALID, mfa_code="  ").mfa_code is None

    def test_unknown_field_is_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            MendSdkConfig.create(**VALID, tokenTtl=10)

        assert exc_info.value.message.startswith("Invalid SDK configuration")

    @pytest.mark.parametrize(
        "field, value", [("token_ttl", 0), ("retry_attempts", -1), ("request_timeout", -5)]
    )
    def test_numeric_bounds(self, field, value):
        with pytest.raises(ConfigurationError):
            MendSdkConfig.create(**VALID, **{field: value})

    def test_config_is_immutable(self):
        config = MendSdkConfig.create(**VALID)

        with pytest.raises(ValidationError):
            config.org_id = 5


class TestEndpointScheme:
    @pytest.mark.parametrize("environment", ["production", "staging"])
    def test_http_rejected_in_hardened_environments(self, environment):
        with pytest.raises(ConfigurationError) as exc_info:
            MendSdkConfig.create(
                **{**VALID, "api_endpoint": "http://api.mend.com"}, environment=environment
            )

        assert "use https" in exc_info.value.message

    def test_http_allowed_with_warning_in_development(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mend_sdk.config"):
            config = MendSdkConfig.create(
                **{**VALID, "api_endpoint": "http://localhost:8080"}, environment="development"
            )

        assert config.api_endpoint == "http://localhost:8080"
        assert "insecure endpoint" in caplog.text

    def test_non_http_scheme_rejected(self):
        with pytest.raises(ConfigurationError):
            MendSdkConfig.create(
                **{**VALID, "api_endpoint": "ftp://api.mend.com"}, environment="test"
            )


class TestFromEnv:
    def test_reads_prefixed_variables(self):
        config = MendSdkConfig.from_env(
            {
                "MEND_API_ENDPOINT": "https://api.mend.com",
                "MEND_EMAIL": "env@example.com",
                "MEND_PASSWORD": "pw",
                "MEND_ORG_ID": "123",
                "MEND_RETRY_ATTEMPTS": "2",
            }
        )

        assert config.email == "env@example.com"
        assert config.org_id == 123
        assert config.retry_attempts == 2

    def test_overrides_win_and_none_is_ignored(self):
        config = MendSdkConfig.from_env(
            {
                "MEND_API_ENDPOINT": "https://api.mend.com",
                "MEND_EMAIL": "env@example.com",
                "MEND_PASSWORD": "pw",
            },
            email="override@example.com",
            password=None,
        )

        assert config.email == "override@example.com"
        assert config.password == "pw"

    def test_missing_environment(self):
        with pytest.raises(ConfigurationError):
            MendSdkConfig.from_env({})

"""Configuration management for the Mend SDK."""

import logging
import os
from typing import Any, Dict, Literal, Mapping, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

Environment = Literal["production", "staging", "development", "test"]

HARDENED_ENVIRONMENTS = ("production", "staging")

ENV_PREFIX = "MEND_"


class MendSdkConfig(BaseModel):
    """Immutable session configuration supplied at construction."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    api_endpoint: str = Field(
        ..., min_length=1, description='Base REST endpoint, e.g. "https://api.mend.com/v2"'
    )
    email: str = Field(..., min_length=1, description="Service account email")
    password: str = Field(..., min_length=1, description="Service account password")
    org_id: Optional[int] = Field(
        default=None, description="Organization to switch to right after login"
    )
    mfa_code: Optional[Union[str, int]] = Field(
        default=None, description="MFA code submitted once when login asks for it"
    )
    token_ttl: float = Field(
        default=55, gt=0, description="Minutes a token is trusted before re-login"
    )
    request_timeout: Optional[float] = Field(
        default=30.0,
        ge=0,
        description="Seconds before a single request attempt is aborted (0 disables)",
    )
    retry_attempts: int = Field(
        default=0, ge=0, description="Extra attempts for a failed request"
    )
    retry_backoff: float = Field(
        default=0.1, ge=0, description="Base delay in seconds, doubled per attempt"
    )
    default_headers: Dict[str, str] = Field(
        default_factory=dict, description="Headers sent with every request"
    )
    auto_select_single_org: bool = Field(
        default=False,
        description="Switch to the only available organization when org_id is unset",
    )
    environment: Environment = Field(
        default="production",
        description="Plain http endpoints are rejected in production and staging",
    )

    @field_validator("api_endpoint")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("mfa_code", mode="before")
    @classmethod
    def empty_mfa_code_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_endpoint_scheme(self) -> "MendSdkConfig":
        scheme = urlparse(self.api_endpoint).scheme.lower()
        if scheme == "https":
            return self
        if scheme != "http":
            raise ValueError(
                f"api_endpoint must be an http(s) URL, got {self.api_endpoint!r}"
            )
        if self.environment in HARDENED_ENVIRONMENTS:
            raise ValueError(
                f"Insecure api_endpoint {self.api_endpoint!r} is not allowed "
                f"in {self.environment}; use https"
            )
        logger.warning(
            f"Using insecure endpoint {self.api_endpoint} ({self.environment} environment)"
        )
        return self

    @classmethod
    def create(cls, **values: Any) -> "MendSdkConfig":
        """Validate ``values`` and raise ConfigurationError on any problem."""
        missing = [
            name
            for name in ("api_endpoint", "email", "password")
            if not values.get(name)
        ]
        if missing:
            raise ConfigurationError(
                "api_endpoint, email and password are required "
                f"(missing: {', '.join(missing)})"
            )
        try:
            return cls(**values)
        except ValidationError as e:
            messages = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(
                f"Invalid SDK configuration: {messages}",
                details=e.errors(include_url=False),
            ) from e

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "MendSdkConfig":
        """Build a config from ``MEND_*`` environment variables.

        Keyword overrides that are not ``None`` win over the environment.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name in (
            "api_endpoint",
            "email",
            "password",
            "org_id",
            "mfa_code",
            "token_ttl",
            "request_timeout",
            "retry_attempts",
            "retry_backoff",
            "environment",
        ):
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw not in (None, ""):
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.create(**values)

"""Process-wide configuration.

Values are read from the environment once, at first use, into an immutable
`Settings` object. The verifier, the upstream gateway and the metadata store
adapter receive it through their constructors; nothing below the handlers
reads the environment directly.
"""

import base64
import binascii
import os
from collections.abc import Mapping
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from core.models.errors import ConfigurationError
from core.utils.constants import (
    ASYMMETRIC_JWT_ALGORITHMS,
    DEFAULT_AWS_REGION,
    DEFAULT_JWT_ALGORITHMS,
    DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
    DEFAULT_UPSTREAM_TOKEN_HEADER,
    ENV_ACCESS_TOKEN_ALGORITHMS,
    ENV_ACCESS_TOKEN_SECRET,
    ENV_AWS_ENDPOINT_URL,
    ENV_AWS_REGION,
    ENV_IMAGE_METADATA_TABLE_NAME,
    ENV_IMAGE_SERVICE_TIMEOUT,
    ENV_IMAGE_SERVICE_TOKEN_HEADER,
    ENV_IMAGE_SERVICE_URL,
    ENV_PERSONAL_ACCESS_TOKEN,
)


class Settings(BaseModel):
    """Immutable service configuration."""

    model_config = ConfigDict(frozen=True)

    access_token_public_key: bytes = Field(
        ..., description="PEM-encoded public key used to verify access tokens"
    )
    jwt_algorithms: tuple[str, ...] = Field(
        default=DEFAULT_JWT_ALGORITHMS,
        description="Accepted asymmetric signing algorithms",
    )

    upstream_base_url: str = Field(..., min_length=1)
    upstream_access_token: str = Field(..., min_length=1)
    upstream_token_header: str = DEFAULT_UPSTREAM_TOKEN_HEADER
    upstream_timeout: float = Field(default=DEFAULT_UPSTREAM_TIMEOUT_SECONDS, gt=0)

    metadata_table_name: str = Field(..., min_length=1)
    aws_region: str = DEFAULT_AWS_REGION
    aws_endpoint_url: str | None = None

    @field_validator("jwt_algorithms")
    @classmethod
    def validate_jwt_algorithms(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        rejected = sorted(set(value) - ASYMMETRIC_JWT_ALGORITHMS)
        if rejected:
            raise ValueError(f"Unsupported signing algorithms: {', '.join(rejected)}")
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ConfigurationError: If a required variable is missing or invalid
        """
        env = os.environ if environ is None else environ

        def required(name: str) -> str:
            value = env.get(name, "").strip()
            if not value:
                raise ConfigurationError(
                    message=f"{name} environment variable is not set",
                    details={"variable": name},
                )
            return value

        try:
            # Wrapped base64 (one line per 76 chars) is accepted
            encoded = "".join(required(ENV_ACCESS_TOKEN_SECRET).split())
            public_key = base64.b64decode(encoded, validate=True)
        except binascii.Error as exc:
            raise ConfigurationError(
                message=f"{ENV_ACCESS_TOKEN_SECRET} must be base64 encoded",
                details={"variable": ENV_ACCESS_TOKEN_SECRET},
            ) from exc

        algorithms = tuple(
            alg.strip()
            for alg in env.get(ENV_ACCESS_TOKEN_ALGORITHMS, "").split(",")
            if alg.strip()
        )

        try:
            timeout = float(
                env.get(ENV_IMAGE_SERVICE_TIMEOUT) or DEFAULT_UPSTREAM_TIMEOUT_SECONDS
            )
        except ValueError as exc:
            raise ConfigurationError(
                message=f"{ENV_IMAGE_SERVICE_TIMEOUT} must be a number",
                details={"variable": ENV_IMAGE_SERVICE_TIMEOUT},
            ) from exc

        try:
            return cls(
                access_token_public_key=public_key,
                jwt_algorithms=algorithms or DEFAULT_JWT_ALGORITHMS,
                upstream_base_url=required(ENV_IMAGE_SERVICE_URL).rstrip("/"),
                upstream_access_token=required(ENV_PERSONAL_ACCESS_TOKEN),
                upstream_token_header=env.get(ENV_IMAGE_SERVICE_TOKEN_HEADER)
                or DEFAULT_UPSTREAM_TOKEN_HEADER,
                upstream_timeout=timeout,
                metadata_table_name=required(ENV_IMAGE_METADATA_TABLE_NAME),
                aws_region=env.get(ENV_AWS_REGION) or DEFAULT_AWS_REGION,
                aws_endpoint_url=env.get(ENV_AWS_ENDPOINT_URL) or None,
            )
        except PydanticValidationError as exc:
            name = _FIELD_ENV_VARS.get(_failed_field(exc), "configuration")
            raise ConfigurationError(
                message=f"{name} has an invalid value",
                details={"variable": name},
            ) from exc


_FIELD_ENV_VARS: dict[str, str] = {
    "access_token_public_key": ENV_ACCESS_TOKEN_SECRET,
    "jwt_algorithms": ENV_ACCESS_TOKEN_ALGORITHMS,
    "upstream_base_url": ENV_IMAGE_SERVICE_URL,
    "upstream_access_token": ENV_PERSONAL_ACCESS_TOKEN,
    "upstream_token_header": ENV_IMAGE_SERVICE_TOKEN_HEADER,
    "upstream_timeout": ENV_IMAGE_SERVICE_TIMEOUT,
    "metadata_table_name": ENV_IMAGE_METADATA_TABLE_NAME,
    "aws_region": ENV_AWS_REGION,
    "aws_endpoint_url": ENV_AWS_ENDPOINT_URL,
}


def _failed_field(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    loc = errors[0].get("loc", ()) if errors else ()
    return str(loc[0]) if loc else ""


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first call."""
    return Settings.from_env()

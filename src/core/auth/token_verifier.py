"""Bearer token verification.

Access tokens are JWTs signed by the auth service with an asymmetric key; this
service only holds the public half, delivered base64 encoded in configuration.
"""

from typing import Any

import jwt
from aws_lambda_powertools import Logger

from core.models.errors import AuthenticationError
from core.models.identity import CallerIdentity
from core.utils.config import Settings
from core.utils.constants import (
    BEARER_SCHEME,
    ERROR_CODE_INVALID_SCHEME,
    ERROR_CODE_INVALID_TOKEN,
)

logger = Logger(UTC=True)

REASON_INVALID_SCHEME = "invalid_scheme"
REASON_INVALID_TOKEN = "invalid_token"


class TokenVerifier:
    """Turns an `Authorization` header value into a `CallerIdentity`."""

    def __init__(self, settings: Settings) -> None:
        self._public_key = settings.access_token_public_key
        self._algorithms = list(settings.jwt_algorithms)

    def verify(self, raw_header: str | None) -> CallerIdentity:
        """Verify a bearer credential.

        Args:
            raw_header: Value of the `Authorization` header, if any

        Returns:
            Identity built from the token claims

        Raises:
            AuthenticationError: `reason` is ``invalid_scheme`` when the header
                is missing or not a bearer credential, ``invalid_token`` when
                the token fails verification
        """
        scheme, _, token = (raw_header or "").strip().partition(" ")

        if scheme != BEARER_SCHEME:
            raise AuthenticationError(
                message="Invalid authentication scheme.",
                reason=REASON_INVALID_SCHEME,
                error_code=ERROR_CODE_INVALID_SCHEME,
            )

        token = token.strip()
        if not token:
            raise AuthenticationError(
                message="Access token is missing.",
                reason=REASON_INVALID_TOKEN,
                error_code=ERROR_CODE_INVALID_TOKEN,
            )

        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self._public_key,
                algorithms=self._algorithms,
                options={"require": ["sub"]},
            )
        except jwt.PyJWTError as exc:
            logger.info(
                "Access token rejected",
                extra={"error_type": type(exc).__name__},
            )
            raise AuthenticationError(
                message="Invalid or expired access token.",
                reason=REASON_INVALID_TOKEN,
                error_code=ERROR_CODE_INVALID_TOKEN,
            ) from exc

        return _identity_from_claims(payload)


def _identity_from_claims(payload: dict[str, Any]) -> CallerIdentity:
    permission_level = payload.get("x_permission_level")

    try:
        return CallerIdentity(
            subject=str(payload["sub"]),
            first_name=payload.get("given_name"),
            last_name=payload.get("family_name"),
            email=payload.get("email"),
            permission_level=int(permission_level) if permission_level is not None else None,
        )
    except (ValueError, TypeError) as exc:
        raise AuthenticationError(
            message="Invalid or expired access token.",
            reason=REASON_INVALID_TOKEN,
            error_code=ERROR_CODE_INVALID_TOKEN,
        ) from exc

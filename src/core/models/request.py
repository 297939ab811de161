"""Transport-neutral request model.

Handlers convert the API Gateway proxy event into an `ApiRequest` so the
resource workflow never depends on the event layout.
"""

import base64
import binascii
import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.models.errors import ValidationError
from core.utils.constants import AUTHORIZATION_HEADER, ERROR_CODE_INVALID_JSON


class ApiRequest(BaseModel):
    """Explicit request data passed from an entry point into the workflow."""

    model_config = ConfigDict(frozen=True)

    method: str = Field(default="GET")
    path: str | None = None
    resource: str | None = None
    authorization: str | None = None
    image_id: str | None = None
    raw_body: str | None = None
    request_id: str | None = None

    @classmethod
    def from_event(cls, event: dict[str, Any], context: Any = None) -> "ApiRequest":
        """Build a request from an API Gateway (REST, proxy) event."""
        headers = event.get("headers") or {}
        path_params = event.get("pathParameters") or {}

        raw_body = event.get("body")
        if raw_body and event.get("isBase64Encoded"):
            try:
                raw_body = base64.b64decode(raw_body, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as exc:
                raise ValidationError(
                    message="Invalid request body encoding",
                    error_code=ERROR_CODE_INVALID_JSON,
                ) from exc

        return cls(
            method=(event.get("httpMethod") or "GET").upper(),
            path=event.get("path"),
            resource=event.get("resource"),
            authorization=_header(headers, AUTHORIZATION_HEADER),
            image_id=path_params.get("id") or path_params.get("image_id"),
            raw_body=raw_body,
            request_id=getattr(context, "aws_request_id", None),
        )

    def json_body(self) -> dict[str, Any]:
        """Parse the body as a JSON object.

        Raises:
            ValidationError: If the body is not a JSON object
        """
        if not self.raw_body:
            return {}

        try:
            body = json.loads(self.raw_body)
        except json.JSONDecodeError as exc:
            raise ValidationError(
                message="Invalid JSON body",
                error_code=ERROR_CODE_INVALID_JSON,
            ) from exc

        if not isinstance(body, dict):
            raise ValidationError(
                message="Request body must be a JSON object",
                error_code=ERROR_CODE_INVALID_JSON,
            )

        return body


def _header(headers: dict[str, Any], name: str) -> str | None:
    """Case-insensitive header lookup."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None

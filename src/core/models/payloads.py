"""Pydantic models for image request bodies."""

import base64
import binascii
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from core.utils.constants import (
    ALLOWED_CONTENT_TYPES,
    IMMUTABLE_FIELDS,
    MAX_DESCRIPTION_LENGTH,
)

# Leading bytes of every supported image format
IMAGE_SIGNATURES: dict[bytes, str] = {
    b"\xff\xd8\xff": "image/jpeg",
    b"\x89PNG\r\n\x1a\n": "image/png",
    b"GIF87a": "image/gif",
    b"GIF89a": "image/gif",
}


def sniff_content_type(data: bytes) -> str:
    """Content type implied by the image signature.

    Raises:
        ValueError: If the bytes do not start with a supported signature
    """
    for signature, content_type in IMAGE_SIGNATURES.items():
        if data.startswith(signature):
            return content_type

    raise ValueError("Unsupported or unknown image type")


def _validate_content_type(value: str | None) -> str | None:
    if value is not None and value not in ALLOWED_CONTENT_TYPES:
        raise ValueError(
            f"Invalid content type '{value}'. "
            f"Allowed content types: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}"
        )
    return value


def _reject_immutable_fields(data: Any) -> Any:
    if isinstance(data, dict):
        immutable = sorted(key for key in data if key in IMMUTABLE_FIELDS)
        if immutable:
            raise ValueError(f"Immutable fields cannot be changed: {', '.join(immutable)}")
    return data


class _ImagePayload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class CreateImagePayload(_ImagePayload):
    """Validation model for image creation."""

    data: StrictStr = Field(..., description="Base64 encoded image content")
    content_type: StrictStr = Field(..., description="MIME type of the image")
    description: StrictStr | None = Field(
        None, max_length=MAX_DESCRIPTION_LENGTH, description="Image description"
    )

    @field_validator("content_type")
    @classmethod
    def validate_content_type(cls, value: str) -> str:
        return _validate_content_type(value)

    @field_validator("data")
    @classmethod
    def validate_data(cls, value: str) -> str:
        """
        Validate base64 image data:
        - must not be empty
        - must decode correctly
        - must start with a known image signature
        """
        if not value:
            raise ValueError("data must not be empty")

        try:
            decoded = base64.b64decode(value, validate=True)
        except binascii.Error as exc:
            raise ValueError("Invalid base64 encoded image data") from exc

        if not decoded:
            raise ValueError("Decoded image data is empty")

        sniff_content_type(decoded)
        return value

    @model_validator(mode="after")
    def validate_data_matches_content_type(self) -> "CreateImagePayload":
        detected = sniff_content_type(base64.b64decode(self.data))
        if detected != self.content_type:
            raise ValueError(
                f"Image data is '{detected}' but contentType is '{self.content_type}'"
            )
        return self

    def to_upstream(self) -> dict[str, Any]:
        """Body forwarded to the upstream create endpoint."""
        return self.model_dump(by_alias=True)


class ReplaceImagePayload(_ImagePayload):
    """Validation model for a full update (PUT).

    An omitted description clears the stored one.
    """

    content_type: StrictStr = Field(..., description="MIME type of the image")
    description: StrictStr | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)

    @model_validator(mode="before")
    @classmethod
    def reject_immutable_fields(cls, data: Any) -> Any:
        return _reject_immutable_fields(data)

    @field_validator("content_type")
    @classmethod
    def validate_content_type(cls, value: str) -> str:
        return _validate_content_type(value)

    def changes(self) -> dict[str, Any]:
        """Store patch: every mutable field, `None` meaning remove."""
        return {"content_type": self.content_type, "description": self.description}

    def to_upstream(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class UpdateImagePayload(_ImagePayload):
    """Validation model for a partial update (PATCH)."""

    content_type: StrictStr | None = Field(None, description="MIME type of the image")
    description: StrictStr | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)

    @model_validator(mode="before")
    @classmethod
    def reject_immutable_fields(cls, data: Any) -> Any:
        return _reject_immutable_fields(data)

    @field_validator("content_type")
    @classmethod
    def validate_content_type(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError("contentType must not be null")
        return _validate_content_type(value)

    @model_validator(mode="after")
    def validate_not_empty(self) -> "UpdateImagePayload":
        if not self.model_fields_set:
            raise ValueError("At least one of contentType or description is required")
        return self

    def changes(self) -> dict[str, Any]:
        """Store patch: only the fields present in the request."""
        return self.model_dump(exclude_unset=True)

    def to_upstream(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)

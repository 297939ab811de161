import pytest

from core.models.errors import ValidationError
from core.models.payloads import ReplaceImagePayload, UpdateImagePayload
from core.utils.constants import (
    ERROR_CODE_IMMUTABLE_FIELD,
    ERROR_CODE_UNSUPPORTED_MIME_TYPE,
    ERROR_CODE_VALIDATION_FAILED,
)
from core.utils.validators import sanitize_validation_errors, validate_request


class TestSanitizeValidationErrors:
    def test_strips_internal_fields(self) -> None:
        errors = [
            {
                "loc": ("data",),
                "msg": "Value error, Invalid base64 encoded image data",
                "type": "value_error",
                "input": "A" * 10_000,
                "url": "https://errors.pydantic.dev/",
                "ctx": {"error": "boom"},
            }
        ]

        assert sanitize_validation_errors(errors) == [
            {"field": "data", "message": "Data must be a valid Base64-encoded string"}
        ]

    def test_missing_field(self) -> None:
        errors = [{"loc": ("contentType",), "msg": "Field required", "type": "missing"}]

        assert sanitize_validation_errors(errors) == [
            {"field": "contentType", "message": "This field is required"}
        ]

    def test_model_level_error_is_reported_on_body(self) -> None:
        errors = [{"loc": (), "msg": "Value error, At least one field", "type": "value_error"}]

        assert sanitize_validation_errors(errors) == [
            {"field": "body", "message": "At least one field"}
        ]

    def test_description_too_long(self) -> None:
        errors = [{"loc": ("description",), "msg": "too long", "type": "string_too_long"}]

        assert sanitize_validation_errors(errors)[0]["message"] == (
            "The description has a max length of 300 characters"
        )


class TestValidateRequest:
    def test_returns_model(self) -> None:
        payload = validate_request(ReplaceImagePayload, {"contentType": "image/png"})

        assert isinstance(payload, ReplaceImagePayload)

    def test_raises_domain_error_with_details(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_request(ReplaceImagePayload, {})

        assert exc_info.value.error_code == ERROR_CODE_VALIDATION_FAILED
        assert exc_info.value.details == {
            "errors": [{"field": "contentType", "message": "This field is required"}]
        }

    def test_immutable_field_code(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_request(UpdateImagePayload, {"ownerId": "someone-else"})

        assert exc_info.value.error_code == ERROR_CODE_IMMUTABLE_FIELD

    def test_unsupported_content_type_code(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_request(UpdateImagePayload, {"contentType": "image/tiff"})

        assert exc_info.value.error_code == ERROR_CODE_UNSUPPORTED_MIME_TYPE

"""Request validation utilities."""

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.models.errors import ValidationError
from core.utils.constants import (
    ERROR_CODE_IMMUTABLE_FIELD,
    ERROR_CODE_UNSUPPORTED_MIME_TYPE,
    MAX_DESCRIPTION_LENGTH,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


def sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Sanitize Pydantic validation errors for API responses.

    Removes sensitive/internal fields like:
    - url
    - ctx
    - input (which may hold the whole base64 payload)
    - internal exception details
    """
    sanitized: list[dict[str, str]] = []

    for err in errors:
        field = ".".join(str(x) for x in err.get("loc", [])) or "body"
        raw_msg = err.get("msg", "Invalid value")
        err_type = err.get("type", "")

        # Remove noisy prefixes
        msg = raw_msg.replace("Value error,", "").strip()

        # Friendly rewrites for common cases
        if err_type == "missing":
            msg = "This field is required"
        elif err_type == "string_type":
            msg = "Invalid value type"
        elif err_type == "string_too_long":
            msg = f"The description has a max length of {MAX_DESCRIPTION_LENGTH} characters"
        elif "base64" in msg.lower():
            msg = "Data must be a valid Base64-encoded string"

        sanitized.append(
            {
                "field": field,
                "message": msg,
            }
        )

    return sanitized


def _error_code_for(errors: list[dict[str, str]]) -> str | None:
    messages = " ".join(err["message"] for err in errors)
    if "Immutable fields" in messages:
        return ERROR_CODE_IMMUTABLE_FIELD
    if "Invalid content type" in messages:
        return ERROR_CODE_UNSUPPORTED_MIME_TYPE
    return None


def validate_request(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    """Validate request data against a Pydantic model.

    Args:
        model: Pydantic model class
        data: Input data to validate

    Returns:
        The validated model

    Raises:
        ValidationError: With sanitized per-field errors in `details`
    """
    try:
        return model.model_validate(data)

    except PydanticValidationError as exc:
        sanitized_errors = sanitize_validation_errors(exc.errors())
        error_code = _error_code_for(sanitized_errors)

        kwargs: dict[str, Any] = {}
        if error_code:
            kwargs["error_code"] = error_code

        raise ValidationError(
            message="Invalid request payload",
            details={"errors": sanitized_errors},
            **kwargs,
        ) from exc

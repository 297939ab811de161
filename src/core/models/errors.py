"""Custom exception classes for the image resource service."""

from typing import Any

from core.utils.constants import (
    ERROR_CODE_AUTHENTICATION_FAILED,
    ERROR_CODE_CONFIGURATION,
    ERROR_CODE_DUPLICATE_IMAGE_ID,
    ERROR_CODE_FORBIDDEN,
    ERROR_CODE_IMAGE_NOT_FOUND,
    ERROR_CODE_STORE,
    ERROR_CODE_UPSTREAM,
    ERROR_CODE_VALIDATION_FAILED,
)


class ImageServiceError(Exception):
    """
    Base exception for all image service errors.

    All custom errors must inherit from this class.
    Callers must explicitly provide a message and error code.
    Optional contextual information can be supplied via `details`.

    `failed_step` is filled in by the resource workflow with the step that
    was running when the error was raised. The underlying cause, when there
    is one, is chained via ``raise ... from exc`` and is only ever logged.
    """

    message: str
    error_code: str
    details: dict[str, Any]
    failed_step: str | None

    def __init__(
        self,
        *,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.failed_step = None

        super().__init__(self.message)


class AuthenticationError(ImageServiceError):
    """Raised when the bearer credential is missing, malformed or invalid."""

    reason: str

    def __init__(
        self,
        *,
        message: str,
        reason: str,
        error_code: str = ERROR_CODE_AUTHENTICATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class AuthorizationError(ImageServiceError):
    """Raised when the caller does not own the requested image."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_FORBIDDEN,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ValidationError(ImageServiceError):
    """Raised when request or record validation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_VALIDATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class NotFoundError(ImageServiceError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_IMAGE_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class UpstreamError(ImageServiceError):
    """Raised when a call to the upstream image service fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_UPSTREAM,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class StoreError(ImageServiceError):
    """Raised when a metadata store operation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_STORE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class DuplicateImageError(StoreError):
    """Raised when a second record is written for an existing image id.

    Image ids are unique by construction of the table key; hitting this
    means the store invariant has been violated.
    """

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_DUPLICATE_IMAGE_ID,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ConfigurationError(ImageServiceError):
    """Raised when required process configuration is missing or invalid."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_CONFIGURATION,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )

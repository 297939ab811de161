"""Global constants used throughout the application.

This module centralizes error codes, field constraints, header names and
environment variable names shared across handlers, the workflow service and the
infrastructure layer.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================

# Authentication / Authorization
ERROR_CODE_AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
ERROR_CODE_INVALID_SCHEME = "INVALID_AUTHENTICATION_SCHEME"
ERROR_CODE_INVALID_TOKEN = "INVALID_ACCESS_TOKEN"
ERROR_CODE_FORBIDDEN = "FORBIDDEN"

# Validation Errors
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_UNSUPPORTED_MIME_TYPE = "UNSUPPORTED_MIME_TYPE"
ERROR_CODE_IMMUTABLE_FIELD = "IMMUTABLE_FIELD"
ERROR_CODE_INVALID_JSON = "INVALID_JSON"

# Not Found Errors
ERROR_CODE_IMAGE_NOT_FOUND = "IMAGE_NOT_FOUND"
ERROR_CODE_ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"

# Upstream Errors
ERROR_CODE_UPSTREAM = "UPSTREAM_ERROR"
ERROR_CODE_UPSTREAM_UNREACHABLE = "UPSTREAM_UNREACHABLE"
ERROR_CODE_UPSTREAM_BAD_STATUS = "UPSTREAM_BAD_STATUS"
ERROR_CODE_UPSTREAM_MALFORMED = "UPSTREAM_MALFORMED_RESPONSE"

# Metadata Store Errors
ERROR_CODE_STORE = "STORE_ERROR"
ERROR_CODE_METADATA_CREATE_FAILED = "METADATA_CREATE_FAILED"
ERROR_CODE_METADATA_FETCH_FAILED = "METADATA_FETCH_FAILED"
ERROR_CODE_METADATA_UPDATE_FAILED = "METADATA_UPDATE_FAILED"
ERROR_CODE_METADATA_DELETE_FAILED = "METADATA_DELETE_FAILED"
ERROR_CODE_METADATA_LIST_FAILED = "METADATA_LIST_FAILED"
ERROR_CODE_METADATA_INVALID_FORMAT = "METADATA_INVALID_FORMAT"
ERROR_CODE_DUPLICATE_IMAGE_ID = "DUPLICATE_IMAGE_ID"

# Configuration
ERROR_CODE_CONFIGURATION = "CONFIGURATION_ERROR"

# Internal / Unexpected
ERROR_CODE_INTERNAL_ERROR = "INTERNAL_ERROR"


# ============================================================================
# Image Record Constraints
# ============================================================================

ALLOWED_CONTENT_TYPES: Final[frozenset[str]] = frozenset(
    {"image/gif", "image/jpeg", "image/png"}
)

MAX_DESCRIPTION_LENGTH: Final[int] = 300

# Fields owned by the upstream service or the store; never writable by callers
IMMUTABLE_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "id",
        "imageId",
        "image_id",
        "imageUrl",
        "image_url",
        "ownerId",
        "owner_id",
        "createdAt",
        "created_at",
        "updatedAt",
        "updated_at",
    }
)

MUTABLE_FIELDS: Final[frozenset[str]] = frozenset({"content_type", "description"})

# ============================================================================
# Metadata Table Layout
# ============================================================================

METADATA_PARTITION_KEY = "image_id"
OWNER_INDEX_NAME = "owner-index"

# ============================================================================
# Authentication
# ============================================================================

AUTHORIZATION_HEADER = "Authorization"
BEARER_SCHEME = "Bearer"
DEFAULT_JWT_ALGORITHMS: Final[tuple[str, ...]] = ("RS256",)
ASYMMETRIC_JWT_ALGORITHMS: Final[frozenset[str]] = frozenset(
    {
        "RS256",
        "RS384",
        "RS512",
        "PS256",
        "PS384",
        "PS512",
        "ES256",
        "ES256K",
        "ES384",
        "ES512",
        "EdDSA",
    }
)

# ============================================================================
# Upstream Image Service
# ============================================================================

DEFAULT_UPSTREAM_TOKEN_HEADER = "X-API-Private-Token"
DEFAULT_UPSTREAM_TIMEOUT_SECONDS = 10.0
UPSTREAM_IMAGES_PATH = "/images"

# ============================================================================
# API Gateway Configuration
# ============================================================================

API_PREFIX = "/api/v1"
CORS_ORIGIN = "*"
CORS_METHODS = "GET,POST,PUT,PATCH,DELETE,OPTIONS"
CORS_HEADERS = "Content-Type,Authorization"
EXPOSE_HEADERS = "Content-Type,Content-Length,X-Request-Id"
DEFAULT_CONTENT_TYPE = "application/json"
REQUEST_ID_HEADER = "X-Request-Id"

# ============================================================================
# Metrics
# ============================================================================

METRICS_NAMESPACE = "ImageResourceService"

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_ACCESS_TOKEN_SECRET = "ACCESS_TOKEN_SECRET"
ENV_ACCESS_TOKEN_ALGORITHMS = "ACCESS_TOKEN_ALGORITHMS"
ENV_IMAGE_SERVICE_URL = "IMAGE_SERVICE_URL"
ENV_PERSONAL_ACCESS_TOKEN = "PERSONAL_ACCESS_TOKEN"
ENV_IMAGE_SERVICE_TOKEN_HEADER = "IMAGE_SERVICE_TOKEN_HEADER"
ENV_IMAGE_SERVICE_TIMEOUT = "IMAGE_SERVICE_TIMEOUT"
ENV_IMAGE_METADATA_TABLE_NAME = "IMAGE_METADATA_TABLE_NAME"
ENV_AWS_ENDPOINT_URL = "AWS_ENDPOINT_URL"
ENV_AWS_REGION = "AWS_REGION"
ENV_CORS_ORIGIN = "CORS_ORIGIN"
DEFAULT_AWS_REGION = "us-east-1"

"""requests-backed implementation of ImageGatewayRepository."""

from typing import Any

import requests
from aws_lambda_powertools import Logger

from core.infrastructure.adapters.http_adapter import HttpAdapterProtocol
from core.models.errors import UpstreamError
from core.models.image import UpstreamImage
from core.repositories.gateway_repository import ImageGatewayRepository
from core.utils.constants import (
    ERROR_CODE_UPSTREAM_BAD_STATUS,
    ERROR_CODE_UPSTREAM_MALFORMED,
    ERROR_CODE_UPSTREAM_UNREACHABLE,
    UPSTREAM_IMAGES_PATH,
)

logger = Logger(UTC=True)


class HttpImageGateway(ImageGatewayRepository):
    """Upstream image service client.

    Every call is exactly one round trip. Network failures, non-2xx statuses
    and unreadable bodies are translated into `UpstreamError`; the upstream
    response text is logged but never copied into error details.
    """

    def __init__(self, adapter: HttpAdapterProtocol) -> None:
        self._http = adapter

    def create(self, *, payload: dict[str, Any]) -> UpstreamImage:
        image = self._call("POST", UPSTREAM_IMAGES_PATH, payload)

        if image is None:
            raise UpstreamError(
                message="Image service returned no image descriptor",
                error_code=ERROR_CODE_UPSTREAM_MALFORMED,
                details={"method": "POST", "path": UPSTREAM_IMAGES_PATH},
            )

        logger.info("Upstream image created", extra={"image_id": image.id})
        return image

    def update(
        self,
        *,
        image_id: str,
        patch: dict[str, Any],
        replace: bool,
    ) -> UpstreamImage | None:
        method = "PUT" if replace else "PATCH"
        image = self._call(method, f"{UPSTREAM_IMAGES_PATH}/{image_id}", patch)

        logger.info(
            "Upstream image updated",
            extra={"image_id": image_id, "method": method},
        )
        return image

    def delete(self, *, image_id: str) -> None:
        self._call("DELETE", f"{UPSTREAM_IMAGES_PATH}/{image_id}")
        logger.info("Upstream image deleted", extra={"image_id": image_id})

    def _call(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> UpstreamImage | None:
        """Send one request and parse the optional image descriptor.

        Returns:
            The descriptor, or None when a 2xx response carries no body
        """
        try:
            response = self._http.send(method=method, path=path, json=payload)

        except requests.RequestException as exc:
            logger.error(
                "Image service unreachable",
                extra={
                    "method": method,
                    "path": path,
                    "error_type": type(exc).__name__,
                },
            )
            raise UpstreamError(
                message="Image service is unreachable",
                error_code=ERROR_CODE_UPSTREAM_UNREACHABLE,
                details={"method": method, "path": path},
            ) from exc

        if not response.ok:
            logger.error(
                "Image service returned an error status",
                extra={
                    "method": method,
                    "path": path,
                    "status": response.status_code,
                    "body": response.text[:500],
                },
            )
            raise UpstreamError(
                message="Image service request failed",
                error_code=ERROR_CODE_UPSTREAM_BAD_STATUS,
                details={
                    "method": method,
                    "path": path,
                    "status": response.status_code,
                },
            )

        if not response.content or method == "DELETE":
            return None

        try:
            return UpstreamImage.model_validate(response.json())
        except ValueError as exc:
            logger.error(
                "Malformed image service response",
                extra={
                    "method": method,
                    "path": path,
                    "status": response.status_code,
                },
            )
            raise UpstreamError(
                message="Image service returned a malformed response",
                error_code=ERROR_CODE_UPSTREAM_MALFORMED,
                details={
                    "method": method,
                    "path": path,
                    "status": response.status_code,
                },
            ) from exc

"""Abstract contract for the upstream image service."""

from abc import ABC, abstractmethod
from typing import Any

from core.models.image import UpstreamImage


class ImageGatewayRepository(ABC):
    """Contract for the external service of record for image content.

    The upstream service has no notion of the calling user; access control
    happens before any of these methods is invoked. Implementations make
    exactly one attempt per call.
    """

    @abstractmethod
    def create(self, *, payload: dict[str, Any]) -> UpstreamImage:
        """Create an image upstream.

        Args:
            payload: Caller-supplied `data`, `contentType` and `description`

        Returns:
            Upstream descriptor with the assigned id, URL and content type

        Raises:
            UpstreamError: On network failure, non-2xx status or malformed body
        """

    @abstractmethod
    def update(
        self,
        *,
        image_id: str,
        patch: dict[str, Any],
        replace: bool,
    ) -> UpstreamImage | None:
        """Update an image's mutable fields upstream.

        Args:
            image_id: Upstream image identifier
            patch: `contentType` and/or `description`
            replace: Full replacement (PUT) when True, partial (PATCH) otherwise

        Returns:
            Upstream descriptor, or None when the service answers without a body

        Raises:
            UpstreamError: On network failure, non-2xx status or malformed body
        """

    @abstractmethod
    def delete(self, *, image_id: str) -> None:
        """Delete an image upstream.

        Raises:
            UpstreamError: On network failure or non-2xx status
        """

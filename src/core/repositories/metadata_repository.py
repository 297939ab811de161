"""Abstract contract for image metadata persistence."""

from abc import ABC, abstractmethod
from typing import Any

from core.models.image import ImageRecord

Patch = dict[str, Any]


class ImageMetadataRepository(ABC):
    """Contract for storing and retrieving image records.

    Implementations could be DynamoDB, MongoDB, an in-memory dict, etc.
    The resource workflow depends on this interface, not the implementation.
    Each operation is atomic on its own; there are no multi-record
    transactions.
    """

    @abstractmethod
    def find_by_owner(self, *, owner_id: str) -> list[ImageRecord]:
        """Return every record owned by `owner_id` (possibly empty, unordered).

        Raises:
            StoreError: If the query fails
        """

    @abstractmethod
    def find_by_id(self, *, image_id: str) -> ImageRecord | None:
        """Fetch a single record.

        Returns:
            The record, or None if no record exists for `image_id`

        Raises:
            StoreError: If the fetch fails
        """

    @abstractmethod
    def insert(self, *, record: ImageRecord) -> ImageRecord:
        """Persist a new record.

        Returns:
            The stored record, including storage-assigned fields

        Raises:
            ValidationError: If required fields are absent, the content type is
                not supported, or the description is too long
            DuplicateImageError: If a record already exists for the image id
            StoreError: If the write fails for other reasons
        """

    @abstractmethod
    def update(self, *, image_id: str, patch: Patch) -> ImageRecord | None:
        """Apply a patch of mutable fields (`content_type`, `description`).

        A `None` value removes the attribute.

        Returns:
            The updated record, or None if no record exists for `image_id`

        Raises:
            ValidationError: If the patch touches an immutable field or holds
                an invalid value
            StoreError: If the write fails
        """

    @abstractmethod
    def delete(self, *, image_id: str) -> bool:
        """Remove a record.

        Returns:
            True if a record was removed, False if none existed

        Raises:
            StoreError: If the delete fails
        """

"""DynamoDB-backed implementation of ImageMetadataRepository."""

import uuid
from typing import Any

from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapterProtocol
from core.models.errors import (
    DuplicateImageError,
    StoreError,
    ValidationError,
)
from core.models.image import ImageRecord
from core.repositories.metadata_repository import ImageMetadataRepository, Patch
from core.utils.constants import (
    ALLOWED_CONTENT_TYPES,
    ERROR_CODE_IMMUTABLE_FIELD,
    ERROR_CODE_METADATA_CREATE_FAILED,
    ERROR_CODE_METADATA_DELETE_FAILED,
    ERROR_CODE_METADATA_FETCH_FAILED,
    ERROR_CODE_METADATA_INVALID_FORMAT,
    ERROR_CODE_METADATA_LIST_FAILED,
    ERROR_CODE_METADATA_UPDATE_FAILED,
    ERROR_CODE_UNSUPPORTED_MIME_TYPE,
    MAX_DESCRIPTION_LENGTH,
    METADATA_PARTITION_KEY,
    MUTABLE_FIELDS,
    OWNER_INDEX_NAME,
)
from core.utils.time import utc_now_iso

Item = dict[str, Any]

logger = Logger(UTC=True)

CONDITION_EXISTS = f"attribute_exists({METADATA_PARTITION_KEY})"
CONDITION_NOT_EXISTS = f"attribute_not_exists({METADATA_PARTITION_KEY})"


def _is_conditional_check_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class DynamoDBMetadata(ImageMetadataRepository):
    """DynamoDB-backed metadata storage with error handling.

    The table is keyed by `image_id`, which makes the id unique by
    construction; `owner-index` (owner_id, created_at) serves listings.
    All boto3 errors are caught and translated into domain-specific errors
    with stable semantics.
    """

    def __init__(self, adapter: DynamoDBAdapterProtocol) -> None:
        """Initialize with DynamoDB adapter."""
        self._db: DynamoDBAdapterProtocol = adapter

    def find_by_owner(self, *, owner_id: str) -> list[ImageRecord]:
        """Return all records for an owner, following every result page."""
        logger.debug("Listing owner images", extra={"owner_id": owner_id})

        query_kwargs: dict[str, Any] = {
            "IndexName": OWNER_INDEX_NAME,
            "KeyConditionExpression": Key("owner_id").eq(owner_id),
        }

        items: list[Item] = []

        try:
            while True:
                response = self._db.query(**query_kwargs)
                items.extend(response.get("Items", []))

                last_evaluated_key = response.get("LastEvaluatedKey")
                if not last_evaluated_key:
                    break
                query_kwargs["ExclusiveStartKey"] = last_evaluated_key

        except ClientError as exc:
            logger.error("DynamoDB query failed", extra={"owner_id": owner_id})
            raise StoreError(
                message="Unable to list images",
                error_code=ERROR_CODE_METADATA_LIST_FAILED,
                details={"owner_id": owner_id},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error listing images")
            raise StoreError(
                message="Unable to list images",
                error_code=ERROR_CODE_METADATA_LIST_FAILED,
                details={"owner_id": owner_id},
            ) from exc

        records: list[ImageRecord] = []
        for item in items:
            try:
                records.append(self._to_record(item))
            except StoreError:
                logger.warning(
                    "Skipping malformed item",
                    extra={"image_id": item.get(METADATA_PARTITION_KEY)},
                )

        logger.info(
            "Owner images listed",
            extra={"owner_id": owner_id, "count": len(records)},
        )
        return records

    def find_by_id(self, *, image_id: str) -> ImageRecord | None:
        """Fetch a single record by image id.

        Raises:
            StoreError: If fetch fails
        """
        logger.debug("Fetching metadata", extra={"image_id": image_id})

        try:
            response = self._db.get_item(key={METADATA_PARTITION_KEY: image_id})

        except ClientError as exc:
            logger.error("DynamoDB get_item failed", extra={"image_id": image_id})
            raise StoreError(
                message="Unable to retrieve image metadata",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_id": image_id},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error fetching metadata")
            raise StoreError(
                message="Unable to retrieve image metadata",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_id": image_id},
            ) from exc

        item = response.get("Item")
        if item is None:
            return None

        return self._to_record(item)

    def insert(self, *, record: ImageRecord) -> ImageRecord:
        """Create the record for a freshly created upstream image.

        Raises:
            ValidationError: If the record violates field constraints
            DuplicateImageError: If a record for this image id already exists
            StoreError: If creation fails
        """
        self._validate_record(record)

        now = utc_now_iso()
        stored = record.model_copy(
            update={
                "record_id": record.record_id or uuid.uuid4().hex,
                "version": 1,
                "created_at": record.created_at or now,
                "updated_at": record.updated_at or now,
            }
        )
        item: Item = stored.model_dump(exclude_none=True)

        logger.debug(
            "Creating metadata",
            extra={"image_id": record.image_id, "owner_id": record.owner_id},
        )

        try:
            self._db.put_item(item=item, condition_expression=CONDITION_NOT_EXISTS)

        except ClientError as exc:
            if _is_conditional_check_failure(exc):
                logger.error(
                    "Image id already has a metadata record",
                    extra={"image_id": record.image_id},
                )
                raise DuplicateImageError(
                    message="Image metadata already exists",
                    details={"image_id": record.image_id},
                ) from exc

            logger.error(
                "DynamoDB put_item failed",
                extra={"image_id": record.image_id},
            )
            raise StoreError(
                message="Unable to save image metadata",
                error_code=ERROR_CODE_METADATA_CREATE_FAILED,
                details={"image_id": record.image_id},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error creating metadata")
            raise StoreError(
                message="Unable to save image metadata",
                error_code=ERROR_CODE_METADATA_CREATE_FAILED,
                details={"image_id": record.image_id},
            ) from exc

        logger.info(
            "Metadata created",
            extra={"image_id": record.image_id, "owner_id": record.owner_id},
        )
        return stored

    def update(self, *, image_id: str, patch: Patch) -> ImageRecord | None:
        """Apply a patch of mutable fields.

        Raises:
            ValidationError: If the patch touches immutable fields or is invalid
            StoreError: If the update fails
        """
        self._validate_patch(image_id, patch)

        set_parts = [
            "#updated_at = :updated_at",
            "#version = if_not_exists(#version, :zero) + :one",
        ]
        remove_parts: list[str] = []
        names = {"#updated_at": "updated_at", "#version": "version"}
        values: dict[str, Any] = {":updated_at": utc_now_iso(), ":zero": 0, ":one": 1}

        for field, value in patch.items():
            names[f"#{field}"] = field
            if value is None:
                remove_parts.append(f"#{field}")
            else:
                set_parts.append(f"#{field} = :{field}")
                values[f":{field}"] = value

        update_expression = "SET " + ", ".join(set_parts)
        if remove_parts:
            update_expression += " REMOVE " + ", ".join(remove_parts)

        logger.debug(
            "Updating metadata",
            extra={"image_id": image_id, "fields": sorted(patch)},
        )

        try:
            response = self._db.update_item(
                key={METADATA_PARTITION_KEY: image_id},
                UpdateExpression=update_expression,
                ConditionExpression=CONDITION_EXISTS,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )

        except ClientError as exc:
            if _is_conditional_check_failure(exc):
                logger.warning("Metadata to update not found", extra={"image_id": image_id})
                return None

            logger.error("DynamoDB update_item failed", extra={"image_id": image_id})
            raise StoreError(
                message="Unable to update image metadata",
                error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                details={"image_id": image_id},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error updating metadata")
            raise StoreError(
                message="Unable to update image metadata",
                error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                details={"image_id": image_id},
            ) from exc

        logger.info("Metadata updated", extra={"image_id": image_id})
        return self._to_record(response.get("Attributes") or {})

    def delete(self, *, image_id: str) -> bool:
        """Remove the record for an image.

        Raises:
            StoreError: If deletion fails
        """
        logger.debug("Removing metadata", extra={"image_id": image_id})

        try:
            self._db.delete_item(
                key={METADATA_PARTITION_KEY: image_id},
                condition_expression=CONDITION_EXISTS,
            )

        except ClientError as exc:
            if _is_conditional_check_failure(exc):
                logger.warning("Metadata to remove not found", extra={"image_id": image_id})
                return False

            logger.error("DynamoDB delete_item failed", extra={"image_id": image_id})
            raise StoreError(
                message="Unable to delete image metadata",
                error_code=ERROR_CODE_METADATA_DELETE_FAILED,
                details={"image_id": image_id},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error removing metadata")
            raise StoreError(
                message="Unable to delete image metadata",
                error_code=ERROR_CODE_METADATA_DELETE_FAILED,
                details={"image_id": image_id},
            ) from exc

        logger.info("Metadata removed", extra={"image_id": image_id})
        return True

    @staticmethod
    def _validate_record(record: ImageRecord) -> None:
        for field in ("image_id", "image_url", "content_type", "owner_id"):
            value = getattr(record, field)
            if not value or not value.strip():
                raise ValidationError(
                    message=f"Image metadata must contain a non-empty '{field}'",
                    details={"field": field},
                )

        DynamoDBMetadata._validate_content_type(record.content_type)
        DynamoDBMetadata._validate_description(record.description)

    @staticmethod
    def _validate_patch(image_id: str, patch: Patch) -> None:
        immutable = sorted(field for field in patch if field not in MUTABLE_FIELDS)
        if immutable:
            raise ValidationError(
                message="Immutable image fields cannot be changed",
                error_code=ERROR_CODE_IMMUTABLE_FIELD,
                details={"image_id": image_id, "fields": immutable},
            )

        if "content_type" in patch:
            DynamoDBMetadata._validate_content_type(patch["content_type"])
        DynamoDBMetadata._validate_description(patch.get("description"))

    @staticmethod
    def _validate_content_type(content_type: Any) -> None:
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(
                message="Unsupported image content type",
                error_code=ERROR_CODE_UNSUPPORTED_MIME_TYPE,
                details={"content_type": content_type},
            )

    @staticmethod
    def _validate_description(description: Any) -> None:
        if description is None:
            return
        if not isinstance(description, str) or len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                message=(
                    f"The description has a max length of {MAX_DESCRIPTION_LENGTH} characters"
                ),
                details={"field": "description"},
            )

    @staticmethod
    def _to_record(item: Item) -> ImageRecord:
        """Convert a DynamoDB item into an ImageRecord."""
        try:
            version = item.get("version")
            return ImageRecord(
                image_id=item["image_id"],
                image_url=item["image_url"],
                content_type=item["content_type"],
                description=item.get("description"),
                owner_id=item["owner_id"],
                created_at=item.get("created_at"),
                updated_at=item.get("updated_at"),
                record_id=item.get("record_id"),
                version=int(version) if version is not None else None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.error(
                "Invalid metadata format",
                extra={"image_id": item.get(METADATA_PARTITION_KEY)},
            )
            raise StoreError(
                message="Invalid image metadata format",
                error_code=ERROR_CODE_METADATA_INVALID_FORMAT,
                details={"image_id": item.get(METADATA_PARTITION_KEY)},
            ) from exc

"""
Pytest configuration and fixtures for image resource service tests.
Provides AWS mocking, the metadata table, signing keys and in-memory
stand-ins for the upstream image service and the metadata store.
"""

import os
import threading
import time
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor
from typing import Any

os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("IMAGE_METADATA_TABLE_NAME", "image-metadata-test")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "image-resource-service")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "ImageResourceService")

import boto3
import jwt
import pytest
from botocore.exceptions import ClientError
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from moto import mock_aws

from core.auth.token_verifier import TokenVerifier
from core.models.errors import UpstreamError
from core.models.image import ImageRecord, UpstreamImage
from core.repositories.gateway_repository import ImageGatewayRepository
from core.repositories.metadata_repository import ImageMetadataRepository, Patch
from core.services.image_resource_service import ImageResourceService
from core.utils.config import Settings
from core.utils.constants import ERROR_CODE_UPSTREAM_BAD_STATUS

UPSTREAM_BASE_URL = "https://images.example.test"

# 1x1 images, smallest valid files of each supported type
PNG_BASE64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
GIF_BASE64 = "R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7"


# ============================================================================
# AWS / DynamoDB
# ============================================================================


@pytest.fixture(scope="function")
def aws_mock():
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def dynamodb_resource(aws_mock):
    return boto3.resource("dynamodb", region_name=os.getenv("AWS_REGION"))


def _create_dynamodb_table(dynamodb_resource):
    """Helper to create the metadata table with its owner index."""
    table_name = os.getenv("IMAGE_METADATA_TABLE_NAME")

    return dynamodb_resource.create_table(
        TableName=table_name,
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "image_id", "KeyType": "HASH"}],
        AttributeDefinitions=[
            {"AttributeName": "image_id", "AttributeType": "S"},
            {"AttributeName": "owner_id", "AttributeType": "S"},
            {"AttributeName": "created_at", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": "owner-index",
                "KeySchema": [
                    {"AttributeName": "owner_id", "KeyType": "HASH"},
                    {"AttributeName": "created_at", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
    )


@pytest.fixture(scope="function")
def dynamodb_table(dynamodb_resource):
    """
    Create the metadata table for one test.

    moto discards the table when the mock context exits.
    """
    table_name = os.getenv("IMAGE_METADATA_TABLE_NAME")

    try:
        table = dynamodb_resource.Table(table_name)
        table.load()
    except ClientError:
        table = _create_dynamodb_table(dynamodb_resource)
        table.wait_until_exists()

    yield table


@pytest.fixture
def dynamodb_put_item(dynamodb_table) -> Callable[[dict[str, Any]], dict[str, Any]]:
    """
    Helper to insert a single raw item into DynamoDB.

    Usage:
        item = dynamodb_put_item({"image_id": "img_1", "owner_id": "user-1"})
    """

    def _put(item: dict[str, Any]) -> dict[str, Any]:
        dynamodb_table.put_item(Item=item)
        return item

    return _put


@pytest.fixture
def dynamodb_get_item(dynamodb_table) -> Callable[[str], dict[str, Any] | None]:
    def _get(image_id: str) -> dict[str, Any] | None:
        response: dict[str, Any] = dynamodb_table.get_item(Key={"image_id": image_id})
        item: dict[str, Any] | None = response.get("Item")
        return item

    return _get


# ============================================================================
# Settings / tokens
# ============================================================================


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def public_key_pem(rsa_private_key) -> bytes:
    return rsa_private_key.public_key().public_bytes(
        Encoding.PEM,
        PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture
def settings(public_key_pem) -> Settings:
    return Settings(
        access_token_public_key=public_key_pem,
        upstream_base_url=UPSTREAM_BASE_URL,
        upstream_access_token="test-private-token",
        metadata_table_name=os.environ["IMAGE_METADATA_TABLE_NAME"],
        aws_region=os.environ["AWS_REGION"],
    )


@pytest.fixture(scope="session")
def make_token(rsa_private_key) -> Callable[..., str]:
    """
    Sign an access token the way the auth service does.

    Usage:
        token = make_token("user-1")
        expired = make_token("user-1", expires_in=-60)
    """

    def _make(subject: str | None = "user-1", *, expires_in: int = 3600, **claims: Any) -> str:
        now = int(time.time())
        payload: dict[str, Any] = {
            "given_name": "Ada",
            "family_name": "Lovelace",
            "email": "ada@example.test",
            "x_permission_level": 1,
            "iat": now,
            "exp": now + expires_in,
            **claims,
        }
        if subject is not None:
            payload["sub"] = subject

        return jwt.encode(payload, rsa_private_key, algorithm="RS256")

    return _make


@pytest.fixture
def bearer(make_token) -> Callable[[str], str]:
    """Authorization header value for a subject."""

    def _bearer(subject: str = "user-1") -> str:
        return f"Bearer {make_token(subject)}"

    return _bearer


# ============================================================================
# In-memory backends
# ============================================================================


class FakeImageGateway(ImageGatewayRepository):
    """Upstream image service stand-in that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.images: dict[str, UpstreamImage] = {}
        self.fail_with: Exception | None = None
        self._counter = 0

    def seed(self, image_id: str, content_type: str = "image/png") -> UpstreamImage:
        image = UpstreamImage(
            id=image_id,
            image_url=f"{UPSTREAM_BASE_URL}/images/{image_id}",
            content_type=content_type,
        )
        self.images[image_id] = image
        return image

    @property
    def mutating_calls(self) -> list[tuple[str, dict[str, Any]]]:
        return [call for call in self.calls if call[0] in {"create", "update", "delete"}]

    def create(self, *, payload: dict[str, Any]) -> UpstreamImage:
        self.calls.append(("create", {"payload": payload}))
        self._raise_if_failing()

        self._counter += 1
        return self.seed(f"img-{self._counter}", payload["contentType"])

    def update(
        self,
        *,
        image_id: str,
        patch: dict[str, Any],
        replace: bool,
    ) -> UpstreamImage | None:
        self.calls.append(("update", {"image_id": image_id, "patch": patch, "replace": replace}))
        self._raise_if_failing()
        self._require(image_id, "PUT" if replace else "PATCH")

        if "contentType" in patch:
            self.images[image_id] = self.images[image_id].model_copy(
                update={"content_type": patch["contentType"]}
            )
        return None

    def delete(self, *, image_id: str) -> None:
        self.calls.append(("delete", {"image_id": image_id}))
        self._raise_if_failing()
        self._require(image_id, "DELETE")

        del self.images[image_id]

    def _raise_if_failing(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _require(self, image_id: str, method: str) -> None:
        if image_id not in self.images:
            raise UpstreamError(
                message="Image service request failed",
                error_code=ERROR_CODE_UPSTREAM_BAD_STATUS,
                details={"method": method, "path": f"/images/{image_id}", "status": 404},
            )


class InMemoryImageMetadata(ImageMetadataRepository):
    """Metadata store stand-in.

    `insert_gate`, when set, blocks inserts until the event is set so tests
    can observe the window between a create response and its local record.
    """

    def __init__(self) -> None:
        self.records: dict[str, ImageRecord] = {}
        self.insert_gate: threading.Event | None = None
        self.insert_error: Exception | None = None
        self._lock = threading.Lock()
        self._counter = 0

    def add(self, record: ImageRecord) -> ImageRecord:
        with self._lock:
            self._counter += 1
            stored = record.model_copy(
                update={
                    "record_id": record.record_id or f"rec-{self._counter}",
                    "version": 1,
                    "created_at": record.created_at or "2024-01-01T00:00:00+00:00",
                    "updated_at": record.updated_at or "2024-01-01T00:00:00+00:00",
                }
            )
            self.records[record.image_id] = stored
        return stored

    def find_by_owner(self, *, owner_id: str) -> list[ImageRecord]:
        return [record for record in self.records.values() if record.owner_id == owner_id]

    def find_by_id(self, *, image_id: str) -> ImageRecord | None:
        return self.records.get(image_id)

    def insert(self, *, record: ImageRecord) -> ImageRecord:
        if self.insert_gate is not None:
            self.insert_gate.wait(timeout=5)
        if self.insert_error is not None:
            raise self.insert_error
        return self.add(record)

    def update(self, *, image_id: str, patch: Patch) -> ImageRecord | None:
        current = self.records.get(image_id)
        if current is None:
            return None

        updated = current.model_copy(
            update={
                **patch,
                "version": (current.version or 0) + 1,
                "updated_at": "2024-06-01T00:00:00+00:00",
            }
        )
        self.records[image_id] = updated
        return updated

    def delete(self, *, image_id: str) -> bool:
        return self.records.pop(image_id, None) is not None


@pytest.fixture
def fake_gateway() -> FakeImageGateway:
    return FakeImageGateway()


@pytest.fixture
def memory_metadata() -> InMemoryImageMetadata:
    return InMemoryImageMetadata()


@pytest.fixture
def metadata_executor() -> Iterator[ThreadPoolExecutor]:
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="test-metadata-writer")
    yield executor
    executor.shutdown(wait=True)


@pytest.fixture
def image_service(
    settings,
    fake_gateway,
    memory_metadata,
    metadata_executor,
) -> ImageResourceService:
    return ImageResourceService(
        verifier=TokenVerifier(settings),
        gateway=fake_gateway,
        metadata=memory_metadata,
        executor=metadata_executor,
    )


@pytest.fixture
def owned_image(fake_gateway, memory_metadata) -> Callable[..., ImageRecord]:
    """
    Seed an image that exists both upstream and in the store.

    Usage:
        record = owned_image("img-1", owner_id="user-1")
    """

    def _seed(
        image_id: str = "img-1",
        *,
        owner_id: str = "user-1",
        content_type: str = "image/png",
        description: str | None = "A picture",
    ) -> ImageRecord:
        image = fake_gateway.seed(image_id, content_type)
        return memory_metadata.add(
            ImageRecord(
                image_id=image.id,
                image_url=image.image_url,
                content_type=content_type,
                description=description,
                owner_id=owner_id,
            )
        )

    return _seed


@pytest.fixture
def png_base64() -> str:
    return PNG_BASE64


@pytest.fixture
def gif_base64() -> str:
    return GIF_BASE64

"""Access-controlled image resource workflow.

Every operation runs a fixed sequence of steps:

    AUTHENTICATING -> AUTHORIZING -> CALLING_UPSTREAM -> RECONCILING_STORE -> RESPONDING

and stops at the first failure. The raised `ImageServiceError` carries the
step it failed in as `failed_step`; handlers turn it into exactly one
response.

Create is the one operation that does not wait for all of its side effects:
the metadata insert runs on a background thread after the upstream create
succeeds, so the 201 can be sent before the local record exists. Until the
insert finishes, a read of the new id may answer 404.
"""

from collections.abc import Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache, partial

from aws_lambda_powertools import Logger

from core.auth.token_verifier import TokenVerifier
from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter
from core.infrastructure.adapters.http_adapter import HttpAdapter
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.infrastructure.http.upstream_image_gateway import HttpImageGateway
from core.models.errors import (
    AuthorizationError,
    ImageServiceError,
    NotFoundError,
    ValidationError,
)
from core.models.identity import CallerIdentity
from core.models.image import ImageRecord, UpstreamImage
from core.models.payloads import (
    CreateImagePayload,
    ReplaceImagePayload,
    UpdateImagePayload,
)
from core.models.request import ApiRequest
from core.repositories.gateway_repository import ImageGatewayRepository
from core.repositories.metadata_repository import ImageMetadataRepository
from core.utils.config import get_settings
from core.utils.validators import validate_request

logger = Logger(UTC=True)

# Shared by every create in this process; workers outlive individual invocations.
_metadata_writer = ThreadPoolExecutor(max_workers=4, thread_name_prefix="metadata-writer")


class WorkflowStep(str, Enum):
    AUTHENTICATING = "AUTHENTICATING"
    AUTHORIZING = "AUTHORIZING"
    CALLING_UPSTREAM = "CALLING_UPSTREAM"
    RECONCILING_STORE = "RECONCILING_STORE"
    RESPONDING = "RESPONDING"


@dataclass(frozen=True)
class CreateResult:
    """Outcome of a create.

    `image` is what the caller receives. `persisted` completes when the
    trailing metadata insert finishes; it is observed for logging only.
    """

    image: UpstreamImage
    persisted: "Future[ImageRecord]"


@contextmanager
def _step(step: WorkflowStep, **context: object) -> Iterator[None]:
    """Tag any domain error raised inside the block with `step`."""
    try:
        yield
    except ImageServiceError as exc:
        if exc.failed_step is None:
            exc.failed_step = step.value

        logger.info(
            "Workflow step failed",
            extra={
                "step": exc.failed_step,
                "error_code": exc.error_code,
                **context,
            },
        )
        raise


def _log_metadata_write(image_id: str, future: "Future[ImageRecord]") -> None:
    """Done-callback for the trailing create insert."""
    if future.cancelled():
        logger.error(
            "Metadata insert cancelled; local record missing for upstream image",
            extra={"image_id": image_id},
        )
        return

    exc = future.exception()
    if exc is None:
        logger.info("Metadata persisted after create", extra={"image_id": image_id})
        return

    logger.error(
        "Metadata insert failed; local record missing for upstream image",
        extra={
            "image_id": image_id,
            "error_type": type(exc).__name__,
            "error_code": getattr(exc, "error_code", None),
        },
        exc_info=exc,
    )


class ImageResourceService:
    """Orchestrates token verification, the upstream gateway and the store."""

    def __init__(
        self,
        *,
        verifier: TokenVerifier,
        gateway: ImageGatewayRepository,
        metadata: ImageMetadataRepository,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._verifier = verifier
        self._gateway = gateway
        self._metadata = metadata
        self._executor = executor or _metadata_writer

    def list_images(self, request: ApiRequest) -> list[ImageRecord]:
        """Return every record owned by the caller, possibly none."""
        with _step(WorkflowStep.AUTHENTICATING):
            caller = self._verifier.verify(request.authorization)

        with _step(WorkflowStep.RECONCILING_STORE, owner_id=caller.subject):
            return self._metadata.find_by_owner(owner_id=caller.subject)

    def get_image(self, request: ApiRequest) -> ImageRecord:
        with _step(WorkflowStep.AUTHENTICATING):
            caller = self._verifier.verify(request.authorization)

        with _step(WorkflowStep.AUTHORIZING, image_id=request.image_id):
            return self._owned_record(caller, self._require_image_id(request))

    def create_image(self, request: ApiRequest) -> CreateResult:
        """Create the image upstream and schedule the local insert.

        Raises:
            AuthenticationError: Bad or missing bearer credential
            ValidationError: Invalid body
            UpstreamError: The upstream create failed; nothing is stored
        """
        with _step(WorkflowStep.AUTHENTICATING):
            caller = self._verifier.verify(request.authorization)

        with _step(WorkflowStep.CALLING_UPSTREAM, owner_id=caller.subject):
            payload = validate_request(CreateImagePayload, request.json_body())
            image = self._gateway.create(payload=payload.to_upstream())

        record = ImageRecord(
            image_id=image.id,
            image_url=image.image_url,
            content_type=image.content_type,
            description=payload.description,
            owner_id=caller.subject,
        )

        persisted = self._schedule_insert(record)
        return CreateResult(image=image, persisted=persisted)

    def replace_image(self, request: ApiRequest) -> ImageRecord:
        """Full update (PUT); an omitted description is cleared."""
        return self._modify(request, replace=True)

    def update_image(self, request: ApiRequest) -> ImageRecord:
        """Partial update (PATCH); only the fields sent are changed."""
        return self._modify(request, replace=False)

    def delete_image(self, request: ApiRequest) -> None:
        with _step(WorkflowStep.AUTHENTICATING):
            caller = self._verifier.verify(request.authorization)

        with _step(WorkflowStep.AUTHORIZING, image_id=request.image_id):
            image_id = self._require_image_id(request)
            self._owned_record(caller, image_id)

        with _step(WorkflowStep.CALLING_UPSTREAM, image_id=image_id):
            self._gateway.delete(image_id=image_id)

        with _step(WorkflowStep.RECONCILING_STORE, image_id=image_id):
            removed = self._metadata.delete(image_id=image_id)

        if not removed:
            logger.warning(
                "Metadata already gone after upstream delete",
                extra={"image_id": image_id},
            )

    def _modify(self, request: ApiRequest, *, replace: bool) -> ImageRecord:
        with _step(WorkflowStep.AUTHENTICATING):
            caller = self._verifier.verify(request.authorization)

        payload_model = ReplaceImagePayload if replace else UpdateImagePayload

        with _step(WorkflowStep.AUTHORIZING, image_id=request.image_id):
            image_id = self._require_image_id(request)
            self._owned_record(caller, image_id)
            payload = validate_request(payload_model, request.json_body())

        with _step(WorkflowStep.CALLING_UPSTREAM, image_id=image_id):
            self._gateway.update(
                image_id=image_id,
                patch=payload.to_upstream(),
                replace=replace,
            )

        with _step(WorkflowStep.RECONCILING_STORE, image_id=image_id):
            record = self._metadata.update(image_id=image_id, patch=payload.changes())
            if record is None:
                raise NotFoundError(
                    message="Image not found",
                    details={"image_id": image_id},
                )

        return record

    def _owned_record(self, caller: CallerIdentity, image_id: str) -> ImageRecord:
        record = self._metadata.find_by_id(image_id=image_id)

        if record is None:
            raise NotFoundError(
                message="Image not found",
                details={"image_id": image_id},
            )

        if record.owner_id != caller.subject:
            logger.warning(
                "Caller does not own image",
                extra={"image_id": image_id, "caller": caller.subject},
            )
            raise AuthorizationError(message="You do not have access to this image")

        return record

    @staticmethod
    def _require_image_id(request: ApiRequest) -> str:
        image_id = (request.image_id or "").strip()
        if not image_id:
            raise ValidationError(
                message="Image id is required",
                details={"field": "id"},
            )
        return image_id

    def _schedule_insert(self, record: ImageRecord) -> "Future[ImageRecord]":
        try:
            persisted = self._executor.submit(self._insert_record, record)
        except RuntimeError as exc:
            # Executor shut down; the upstream image already exists.
            persisted = Future()
            persisted.set_exception(exc)

        persisted.add_done_callback(partial(_log_metadata_write, record.image_id))
        return persisted

    def _insert_record(self, record: ImageRecord) -> ImageRecord:
        with _step(WorkflowStep.RECONCILING_STORE, image_id=record.image_id):
            return self._metadata.insert(record=record)


@lru_cache(maxsize=1)
def get_image_service() -> ImageResourceService:
    """Return the process-wide service wired to the configured backends."""
    settings = get_settings()

    return ImageResourceService(
        verifier=TokenVerifier(settings),
        gateway=HttpImageGateway(HttpAdapter(settings)),
        metadata=DynamoDBMetadata(DynamoDBAdapter(settings)),
    )

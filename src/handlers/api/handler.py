"""
Single Lambda entry point for deployments that route every `/api/v1` path
to one function (API Gateway `{proxy+}` resource).

Dispatches on method and path to the per-operation handlers' plain
functions so metrics and tracing are flushed once per invocation.
"""

from collections.abc import Callable
from typing import Any
from urllib.parse import unquote

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.models.errors import NotFoundError
from core.models.request import ApiRequest
from core.utils.constants import API_PREFIX, ERROR_CODE_ROUTE_NOT_FOUND, METRICS_NAMESPACE
from core.utils.decorators import api_gateway_handler, request_log_context
from core.utils.response import ResponseBuilder
from handlers.create_image.handler import create_image
from handlers.delete_image.handler import delete_image
from handlers.get_image.handler import get_image
from handlers.list_images.handler import list_images
from handlers.replace_image.handler import replace_image
from handlers.update_image.handler import update_image

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)

Operation = Callable[[ApiRequest], dict[str, Any]]

COLLECTION_ROUTE = "/images"
ITEM_ROUTE = "/images/{id}"

ROUTES: dict[str, dict[str, Operation]] = {
    COLLECTION_ROUTE: {
        "GET": list_images,
        "POST": create_image,
    },
    ITEM_ROUTE: {
        "GET": get_image,
        "PUT": replace_image,
        "PATCH": update_image,
        "DELETE": delete_image,
    },
}


def resolve_route(path: str | None) -> tuple[str, str | None] | None:
    """Match a request path against the known routes.

    Returns:
        (route template, image id) or None when nothing matches
    """
    if not path or not path.startswith(API_PREFIX):
        return None

    segments = [segment for segment in path[len(API_PREFIX):].split("/") if segment]

    if segments == ["images"]:
        return COLLECTION_ROUTE, None

    if len(segments) == 2 and segments[0] == "images":
        return ITEM_ROUTE, unquote(segments[1])

    return None


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Route an API Gateway proxy event to its operation.

    Unknown paths answer 404; a known path with an unsupported method
    answers 405 with an `Allow` header.
    """
    logger.info("Received API request", extra=request_log_context(event, context))

    request = ApiRequest.from_event(event, context)
    matched = resolve_route(request.path)

    if matched is None:
        raise NotFoundError(
            message="Route not found",
            error_code=ERROR_CODE_ROUTE_NOT_FOUND,
            details={"path": request.path},
        )

    route, image_id = matched
    operations = ROUTES[route]
    operation = operations.get(request.method)

    if operation is None:
        logger.warning(
            "Method not allowed",
            extra={"route": route, "method": request.method},
        )
        response = ResponseBuilder.method_not_allowed(request_id=request.request_id)
        response["headers"]["Allow"] = ",".join(sorted(operations))
        return response

    if image_id is not None:
        request = request.model_copy(update={"image_id": image_id})

    return operation(request)

"""
Lambda handler responsible for full image updates (PUT).
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.models.request import ApiRequest
from core.services.image_resource_service import get_image_service
from core.utils.constants import METRICS_NAMESPACE
from core.utils.decorators import api_gateway_handler, request_log_context
from core.utils.response import ResponseBuilder

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)


def replace_image(request: ApiRequest) -> dict[str, Any]:
    record = get_image_service().replace_image(request)

    metrics.add_metric(name="ImageReplaced", unit=MetricUnit.Count, value=1)
    logger.info(
        "Image replaced",
        extra={"image_id": record.image_id, "version": record.version},
    )

    return ResponseBuilder.no_content(request_id=request.request_id)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle full image updates.

    `contentType` is required; an omitted `description` is cleared.
    Responds 204 once both the upstream service and the metadata store
    have been updated.
    """
    logger.info("Received image replace request", extra=request_log_context(event, context))

    return replace_image(ApiRequest.from_event(event, context))

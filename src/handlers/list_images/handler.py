"""
Lambda handler responsible for listing the caller's images.
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


def list_images(request: ApiRequest) -> dict[str, Any]:
    """Return every image record owned by the caller (200, possibly empty)."""
    records = get_image_service().list_images(request)

    metrics.add_metric(name="ImagesListed", unit=MetricUnit.Count, value=1)
    logger.info("Images listed", extra={"count": len(records)})

    return ResponseBuilder.ok(
        [record.to_public() for record in records],
        request_id=request.request_id,
    )


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle requests to list images.

    Args:
        event: API Gateway Lambda proxy event
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response
    """
    logger.info("Received image list request", extra=request_log_context(event, context))

    return list_images(ApiRequest.from_event(event, context))

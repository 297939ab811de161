"""
Lambda handler responsible for image creation.
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


def create_image(request: ApiRequest) -> dict[str, Any]:
    """Create the image upstream and answer 201 with the upstream descriptor.

    The local metadata insert is still pending when this returns; its
    outcome is only logged.
    """
    result = get_image_service().create_image(request)

    metrics.add_metric(name="ImageCreated", unit=MetricUnit.Count, value=1)
    logger.info("Image created", extra={"image_id": result.image.id})

    return ResponseBuilder.created(result.image.to_public(), request_id=request.request_id)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle image creation requests.

    Body: `{"data": <base64>, "contentType": ..., "description": ...}`

    Args:
        event: API Gateway Lambda proxy event
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response
    """
    logger.info("Received image create request", extra=request_log_context(event, context))

    return create_image(ApiRequest.from_event(event, context))

"""
Lambda handler responsible for deleting an image resource.
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


def delete_image(request: ApiRequest) -> dict[str, Any]:
    get_image_service().delete_image(request)

    metrics.add_metric(name="ImageDeleted", unit=MetricUnit.Count, value=1)
    logger.info("Image deleted", extra={"image_id": request.image_id})

    return ResponseBuilder.no_content(request_id=request.request_id)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle image deletion requests.

    This function:
    - Builds an ApiRequest from the proxy event
    - Delegates to the resource workflow (ownership, upstream, store)
    - Answers 204; domain errors are mapped by the decorator

    Args:
        event: API Gateway Lambda proxy event
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response
    """
    logger.info("Received image delete request", extra=request_log_context(event, context))

    return delete_image(ApiRequest.from_event(event, context))

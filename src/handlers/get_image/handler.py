"""
Lambda handler responsible for retrieving a single image record.
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


def get_image(request: ApiRequest) -> dict[str, Any]:
    record = get_image_service().get_image(request)

    metrics.add_metric(name="ImageRetrieved", unit=MetricUnit.Count, value=1)

    return ResponseBuilder.ok(record.to_public(), request_id=request.request_id)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle single image retrieval.

    Answers 404 when no record exists for the id and 403 when the
    record belongs to another caller.
    """
    logger.info("Received image get request", extra=request_log_context(event, context))

    return get_image(ApiRequest.from_event(event, context))

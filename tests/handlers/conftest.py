import importlib
import json
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pytest

HANDLER_MODULES = (
    "handlers.list_images.handler",
    "handlers.get_image.handler",
    "handlers.create_image.handler",
    "handlers.replace_image.handler",
    "handlers.update_image.handler",
    "handlers.delete_image.handler",
)


@pytest.fixture
def lambda_context(monkeypatch):
    context = SimpleNamespace(
        aws_request_id="test-request-id",
        function_name="test-function",
        memory_limit_in_mb=256,
        invoked_function_arn="arn:aws:lambda:us-east-1:000000000000:function:test",
        log_group_name="/aws/lambda/test-function",
        log_stream_name="2024/01/01/[$LATEST]test",
    )

    monkeypatch.setattr(
        "aws_lambda_powertools.utilities.typing.LambdaContext",
        lambda: context,
        raising=False,
    )

    return context


@pytest.fixture(autouse=True)
def patched_image_service(monkeypatch, image_service):
    """Point every handler at the in-memory service."""
    for module in HANDLER_MODULES:
        monkeypatch.setattr(
            importlib.import_module(module),
            "get_image_service",
            lambda: image_service,
        )

    return image_service


@pytest.fixture
def make_event(bearer) -> Callable[..., dict[str, Any]]:
    """
    Build an API Gateway proxy event.

    Usage:
        event = make_event("PUT", "/api/v1/images/img-1", body={...}, subject="user-1")
    """

    def _make(
        method: str = "GET",
        path: str = "/api/v1/images",
        *,
        body: Any = None,
        subject: str | None = "user-1",
        authorization: str | None = None,
        image_id: str | None = None,
    ) -> dict[str, Any]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if authorization is not None:
            headers["Authorization"] = authorization
        elif subject is not None:
            headers["Authorization"] = bearer(subject)

        return {
            "httpMethod": method,
            "path": path,
            "resource": "/api/v1/images/{id}" if image_id else "/api/v1/images",
            "headers": headers,
            "pathParameters": {"id": image_id} if image_id else None,
            "queryStringParameters": None,
            "body": json.dumps(body) if body is not None else None,
            "isBase64Encoded": False,
        }

    return _make


def parse_body(resp: dict[str, Any]) -> Any:
    body = resp.get("body")
    if not body:
        return None
    return json.loads(body)


@pytest.fixture
def body_of() -> Callable[[dict[str, Any]], Any]:
    return parse_body

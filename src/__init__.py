"""Image Resource Service Package."""

__version__ = "1.0.0"
__author__ = "Bharat kumar"
__description__ = (
    "Serverless image resource API with ownership checks, an upstream image "
    "service and DynamoDB metadata"
)

__all__ = ["handlers", "core"]

"""Host-agnostic HTTP function plumbing and serverless entry points."""

from kitbridge.functions.base import (
    FunctionEvent,
    FunctionResponse,
    get_header,
    json_response,
)

__all__ = [
    "FunctionEvent",
    "FunctionResponse",
    "get_header",
    "json_response",
]

"""Request/response types shared by the HTTP function handlers.

Handlers are host-agnostic: they receive a FunctionEvent and return a
FunctionResponse. Hosting adapters (Lambda/Netlify event dicts, the aiohttp
server) translate to and from these types.
"""

import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from aiohttp import web

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}

CORS_HEADERS = {
    **JSON_HEADERS,
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

NO_STORE_HEADERS = {**JSON_HEADERS, "Cache-Control": "no-store"}


def normalize_headers(headers: Optional[Mapping[str, str]]) -> dict[str, str]:
    """Lower-case header names so lookups ignore transport casing."""
    if not headers:
        return {}
    return {str(key).lower(): value for key, value in headers.items()}


def get_header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """
    Look up a header value case-insensitively.

    Args:
        headers: Raw header mapping (any casing)
        name: Header name (any casing)

    Returns:
        Header value, or None if absent or empty
    """
    value = normalize_headers(headers).get(name.lower())
    return value or None


@dataclass
class FunctionEvent:
    """Inbound HTTP invocation, as delivered by a serverless host."""

    http_method: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    is_base64_encoded: bool = False
    query_string_parameters: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.http_method = (self.http_method or "").upper()
        self.headers = normalize_headers(self.headers)

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "FunctionEvent":
        """Build from a Lambda/Netlify style event dict."""
        return cls(
            http_method=event.get("httpMethod") or "",
            headers=event.get("headers") or {},
            body=event.get("body"),
            is_base64_encoded=bool(event.get("isBase64Encoded")),
            query_string_parameters=event.get("queryStringParameters") or {},
        )

    @classmethod
    async def from_request(cls, request: web.Request) -> "FunctionEvent":
        """Build from an aiohttp request, base64-encoding the raw body."""
        raw = await request.read()
        return cls(
            http_method=request.method,
            headers=dict(request.headers),
            body=base64.b64encode(raw).decode("ascii") if raw else None,
            is_base64_encoded=bool(raw),
            query_string_parameters=dict(request.query),
        )

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        return get_header(self.headers, name)

    def raw_body(self) -> bytes:
        """
        Decode the body from its transport encoding into exact bytes.

        Raises:
            binascii.Error: If the body is flagged base64 but is not valid base64
        """
        body = self.body or ""
        if self.is_base64_encoded:
            return base64.b64decode(body, validate=True)
        return body.encode("utf-8")

    def json_body(self) -> dict[str, Any]:
        """
        Parse the body as a JSON object (empty body -> {}).

        Raises:
            ValueError: If the body is not a JSON object
        """
        raw = self.raw_body()
        if not raw:
            return {}
        payload = json.loads(raw.decode("utf-8"))
        if not isinstance(payload, dict):
            raise ValueError("JSON body must be an object")
        return payload


@dataclass
class FunctionResponse:
    """Outbound HTTP response with a JSON body."""

    status_code: int
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=lambda: dict(JSON_HEADERS))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the {statusCode, headers, body} shape serverless hosts expect."""
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": json.dumps(self.body),
        }

    def to_web_response(self) -> web.Response:
        """Convert to an aiohttp response."""
        headers = {k: v for k, v in self.headers.items() if k.lower() != "content-type"}
        return web.json_response(self.body, status=self.status_code, headers=headers)


def json_response(
    status_code: int,
    body: dict[str, Any],
    headers: Optional[Mapping[str, str]] = None,
) -> FunctionResponse:
    """Build a JSON FunctionResponse with the given base headers."""
    return FunctionResponse(
        status_code=status_code,
        body=body,
        headers=dict(headers if headers is not None else JSON_HEADERS),
    )


def method_not_allowed(headers: Optional[Mapping[str, str]] = None) -> FunctionResponse:
    """405 response shared by all handlers."""
    return json_response(405, {"error": "Method not allowed"}, headers)


def missing_configuration(
    missing: list[str],
    headers: Optional[Mapping[str, str]] = None,
) -> FunctionResponse:
    """500 response enumerating missing configuration values."""
    logger.error(f"Missing configuration: {', '.join(missing)}")
    return json_response(
        500,
        {"error": f"Missing configuration: {', '.join(missing)}"},
        headers,
    )

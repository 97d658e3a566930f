"""Tests for host-agnostic request/response plumbing and serverless entry points."""

import base64
import binascii
import json
from unittest.mock import patch

import pytest

from kitbridge.functions.base import (
    CORS_HEADERS,
    FunctionEvent,
    FunctionResponse,
    get_header,
    json_response,
)
from kitbridge.functions.lambda_handlers import (
    create_checkout_session_handler,
    stripe_webhook_handler,
    verify_checkout_session_handler,
)

from conftest import event_payload, sign_payload


class TestHeaderLookup:
    """Test case-insensitive header lookup."""

    @pytest.mark.parametrize(
        "name", ["stripe-signature", "Stripe-Signature", "STRIPE-SIGNATURE", "sTrIpE-sIgNaTuRe"]
    )
    def test_any_casing_found(self, name):
        headers = {name: "t=1,v1=abc"}
        assert get_header(headers, "stripe-signature") == "t=1,v1=abc"
        assert get_header(headers, "Stripe-Signature") == "t=1,v1=abc"

    def test_absent_or_empty(self):
        assert get_header(None, "stripe-signature") is None
        assert get_header({}, "stripe-signature") is None
        assert get_header({"Stripe-Signature": ""}, "stripe-signature") is None

    def test_event_normalizes_headers(self):
        event = FunctionEvent(http_method="post", headers={"Stripe-Signature": "sig"})

        assert event.http_method == "POST"
        assert event.headers == {"stripe-signature": "sig"}
        assert event.header("STRIPE-SIGNATURE") == "sig"


class TestBodyDecoding:
    """Test transport body decoding."""

    def test_plain_body_utf8(self):
        event = FunctionEvent(http_method="POST", body='{"name": "Zoé"}')
        assert event.raw_body() == '{"name": "Zoé"}'.encode("utf-8")

    def test_base64_body_decoded_exactly(self):
        raw = '{"name": "Zoé"}'.encode("utf-8")
        event = FunctionEvent(
            http_method="POST",
            body=base64.b64encode(raw).decode("ascii"),
            is_base64_encoded=True,
        )
        assert event.raw_body() == raw

    def test_invalid_base64_raises(self):
        event = FunctionEvent(http_method="POST", body="not base64!!", is_base64_encoded=True)
        with pytest.raises(binascii.Error):
            event.raw_body()

    def test_json_body(self):
        assert FunctionEvent(http_method="POST").json_body() == {}
        assert FunctionEvent(http_method="POST", body='{"a": 1}').json_body() == {"a": 1}

    @pytest.mark.parametrize("body", ["{not json", "[1, 2]"])
    def test_json_body_rejects_non_objects(self, body):
        with pytest.raises(ValueError):
            FunctionEvent(http_method="POST", body=body).json_body()

    def test_from_event(self):
        event = FunctionEvent.from_event(
            {
                "httpMethod": "GET",
                "headers": {"X-Test": "1"},
                "body": None,
                "isBase64Encoded": False,
                "queryStringParameters": {"session_id": "cs_123"},
            }
        )

        assert event.http_method == "GET"
        assert event.header("x-test") == "1"
        assert event.query_string_parameters == {"session_id": "cs_123"}

    def test_from_event_tolerates_null_fields(self):
        event = FunctionEvent.from_event({"httpMethod": "POST", "headers": None})

        assert event.headers == {}
        assert event.query_string_parameters == {}
        assert event.raw_body() == b""


class TestFunctionResponse:
    """Test response serialization."""

    def test_to_dict(self):
        response = json_response(200, {"url": "https://x", "id": "cs_1"}, CORS_HEADERS)
        result = response.to_dict()

        assert result["statusCode"] == 200
        assert result["headers"]["Access-Control-Allow-Origin"] == "*"
        assert json.loads(result["body"]) == {"url": "https://x", "id": "cs_1"}

    def test_default_headers_are_json(self):
        response = FunctionResponse(status_code=405, body={"error": "Method not allowed"})
        assert response.headers == {"Content-Type": "application/json"}

    def test_to_web_response(self):
        response = json_response(403, {"ok": False}, {"Content-Type": "application/json", "Cache-Control": "no-store"})
        web_response = response.to_web_response()

        assert web_response.status == 403
        assert web_response.headers["Cache-Control"] == "no-store"
        assert web_response.content_type == "application/json"


class TestLambdaHandlers:
    """Test serverless entry points."""

    def test_checkout_handler_options(self, global_config):
        result = create_checkout_session_handler({"httpMethod": "OPTIONS"}, None)

        assert result["statusCode"] == 200
        assert json.loads(result["body"]) == {"ok": True}

    def test_checkout_handler_creates_session(self, global_config):
        class Session:
            id = "cs_test_123"
            url = "https://checkout.stripe.com/c/pay/cs_test_123"

        with patch(
            "kitbridge.payments.checkout.stripe.checkout.Session.create",
            return_value=Session(),
        ):
            result = create_checkout_session_handler(
                {"httpMethod": "POST", "body": json.dumps({"email": "a@b.co"})}, None
            )

        assert result["statusCode"] == 200
        assert json.loads(result["body"])["id"] == "cs_test_123"

    def test_webhook_handler_ignores_other_events(self, global_config):
        payload = event_payload("payment_intent.created")
        result = stripe_webhook_handler(
            {
                "httpMethod": "POST",
                "headers": {"Stripe-Signature": sign_payload(payload)},
                "body": base64.b64encode(payload.encode("utf-8")).decode("ascii"),
                "isBase64Encoded": True,
            },
            None,
        )

        assert result["statusCode"] == 200
        assert json.loads(result["body"]) == {
            "received": True,
            "ignored": True,
            "type": "payment_intent.created",
        }

    def test_status_handler_missing_session_id(self, global_config):
        result = verify_checkout_session_handler({"httpMethod": "GET"}, None)

        assert result["statusCode"] == 400
        assert result["headers"]["Cache-Control"] == "no-store"

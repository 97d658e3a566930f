"""Stripe Checkout session creation for one-off program purchases."""

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import stripe

from kitbridge.config.settings import AppConfig, get_config
from kitbridge.functions.base import (
    CORS_HEADERS,
    FunctionEvent,
    FunctionResponse,
    json_response,
    method_not_allowed,
    missing_configuration,
)
from kitbridge.payments.idempotency import SYNC_FLAG

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")

# Request body keys accepted for the customer name, in priority order
NAME_KEYS = ("full_name", "fullName", "first_name", "firstName")


@dataclass
class CheckoutRequest:
    """Validated checkout request."""

    email: str
    full_name: str = ""


def parse_checkout_request(payload: dict[str, Any]) -> CheckoutRequest:
    """
    Validate a checkout request body.

    Args:
        payload: Decoded JSON body

    Returns:
        CheckoutRequest with normalized email and name

    Raises:
        ValueError: If the email is missing or malformed
    """
    email = str(payload.get("email") or "").strip().lower()
    if not email or not EMAIL_RE.match(email):
        raise ValueError("Email invalide")

    full_name = ""
    for key in NAME_KEYS:
        value = str(payload.get(key) or "").strip()
        if value:
            full_name = value
            break

    return CheckoutRequest(email=email, full_name=full_name)


def build_session_params(request: CheckoutRequest, config: AppConfig) -> dict[str, Any]:
    """Build stripe.checkout.Session.create keyword arguments."""
    metadata = {
        "full_name": request.full_name,
        "source": config.checkout_source,
    }

    intent_metadata = dict(metadata)
    if config.kit_sync_strategy == "payment_intent":
        intent_metadata[SYNC_FLAG] = "false"

    return {
        "mode": "payment",
        "line_items": [{"price": config.stripe_price_id, "quantity": 1}],
        "customer_email": request.email,
        "success_url": f"{config.site_url}/merci?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{config.site_url}/annulation",
        "metadata": metadata,
        "payment_intent_data": {"metadata": intent_metadata},
    }


def create_checkout_session(
    event: FunctionEvent,
    config: Optional[AppConfig] = None,
) -> FunctionResponse:
    """
    Handle POST /create-checkout-session.

    Validates the customer email, creates a Stripe Checkout Session for the
    configured price and returns its redirect URL.

    Args:
        event: Inbound invocation
        config: Optional config override (defaults to get_config())

    Returns:
        FunctionResponse: 200 {url, id} | 400/405/500 {error}
    """
    if event.http_method == "OPTIONS":
        return json_response(200, {"ok": True}, CORS_HEADERS)

    if event.http_method != "POST":
        return method_not_allowed(CORS_HEADERS)

    config = config or get_config()

    missing = config.missing_checkout_settings()
    if missing:
        return missing_configuration(missing, CORS_HEADERS)

    try:
        payload = event.json_body()
    except ValueError:
        return json_response(400, {"error": "Invalid JSON body"}, CORS_HEADERS)

    try:
        request = parse_checkout_request(payload)
    except ValueError as e:
        return json_response(400, {"error": str(e)}, CORS_HEADERS)

    # Initialize the SDK per request
    stripe.api_key = config.stripe_secret_key.get_secret_value()

    try:
        session = stripe.checkout.Session.create(**build_session_params(request, config))
    except Exception as e:
        logger.error(f"Checkout session creation failed for {request.email}: {e}")
        message = getattr(e, "user_message", None) or str(e)
        return json_response(
            500,
            {"error": message or "Unable to create checkout session"},
            CORS_HEADERS,
        )

    logger.info(f"Created checkout session {session.id} for {request.email}")

    return json_response(200, {"url": session.url, "id": session.id}, CORS_HEADERS)

"""Checkout session status polling for the post-payment redirect page."""

import logging
from typing import Any, Optional

import stripe

from kitbridge.config.settings import AppConfig, get_config
from kitbridge.functions.base import (
    NO_STORE_HEADERS,
    FunctionEvent,
    FunctionResponse,
    json_response,
    method_not_allowed,
    missing_configuration,
)
from kitbridge.payments.stripe_objects import to_plain_dict
from kitbridge.payments.webhooks import extract_first_name

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "EUR"


def summarize_session(session: dict) -> dict[str, Any]:
    """Sanitized projection of a paid Checkout Session."""
    customer_details = session.get("customer_details") or {}
    amount_total = session.get("amount_total")
    currency = session.get("currency")

    return {
        "ok": True,
        "id": session.get("id"),
        "email": customer_details.get("email") or session.get("customer_email") or None,
        "first_name": extract_first_name(session.get("metadata") or {}),
        # Minor units -> major units
        "amount_total": amount_total / 100
        if isinstance(amount_total, (int, float)) and not isinstance(amount_total, bool)
        else None,
        "currency": str(currency).upper() if currency else DEFAULT_CURRENCY,
    }


def verify_checkout_session(
    event: FunctionEvent,
    config: Optional[AppConfig] = None,
) -> FunctionResponse:
    """
    Handle GET /verify-checkout-session?session_id=...

    An unpaid session is an expected polling state, reported as 403 rather
    than an error.

    Args:
        event: Inbound invocation
        config: Optional config override (defaults to get_config())

    Returns:
        FunctionResponse: 200 {ok: true, ...} | 403 {ok: false} | 400/405/500 {error}
    """
    if event.http_method != "GET":
        return method_not_allowed(NO_STORE_HEADERS)

    config = config or get_config()

    missing = config.missing_status_settings()
    if missing:
        return missing_configuration(missing, NO_STORE_HEADERS)

    session_id = (event.query_string_parameters or {}).get("session_id")
    if not session_id:
        return json_response(400, {"error": "Missing session_id"}, NO_STORE_HEADERS)

    stripe.api_key = config.stripe_secret_key.get_secret_value()

    try:
        session = to_plain_dict(stripe.checkout.Session.retrieve(session_id))
    except Exception as e:
        logger.warning(f"Session lookup failed for {session_id}: {e}")
        message = getattr(e, "user_message", None) or str(e)
        return json_response(
            400,
            {"ok": False, "error": message or "Invalid session"},
            NO_STORE_HEADERS,
        )

    if session.get("payment_status") != "paid":
        logger.info(f"Session {session_id} not paid (status={session.get('payment_status')})")
        return json_response(403, {"ok": False, "error": "Session not paid"}, NO_STORE_HEADERS)

    return json_response(200, summarize_session(session), NO_STORE_HEADERS)

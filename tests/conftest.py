"""Pytest configuration and shared fixtures."""

import hashlib
import hmac
import json
import time
from typing import Any, Optional

import pytest
import stripe

import kitbridge.config.settings as settings
from kitbridge.config.settings import AppConfig

WEBHOOK_SECRET = "whsec_test_secret_key"


def make_config(**overrides: Any) -> AppConfig:
    """Build a fully-configured AppConfig, ignoring any local .env file."""
    values: dict[str, Any] = {
        "stripe_secret_key": "sk_test_123",
        "stripe_price_id": "price_123",
        "stripe_webhook_secret": WEBHOOK_SECRET,
        "site_url": "https://example.com/",
        "kit_api_key": "kit_test_key",
        "kit_tag_id": "tag_1",
        "kit_sequence_id": "",
        "kit_api_version": "v4",
        "kit_sync_strategy": "payment_intent",
    }
    values.update(overrides)
    return AppConfig(_env_file=None, **values)


def sign_payload(
    payload: str,
    secret: str = WEBHOOK_SECRET,
    timestamp: Optional[int] = None,
) -> str:
    """Build a Stripe-Signature header value for a payload."""
    timestamp = timestamp or int(time.time())
    signed_payload = f"{timestamp}.{payload}"
    signature = hmac.new(
        secret.encode("utf-8"), signed_payload.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def event_payload(event_type: str, obj: Optional[dict] = None) -> str:
    """Serialize a minimal Stripe event envelope."""
    return json.dumps(
        {
            "id": "evt_test_123",
            "object": "event",
            "type": event_type,
            "data": {"object": obj or {}},
        }
    )


@pytest.fixture
def config() -> AppConfig:
    """Fully-configured AppConfig (tag only, payment-intent idempotency)."""
    return make_config()


@pytest.fixture
def global_config(monkeypatch, config) -> AppConfig:
    """Install `config` as the get_config() singleton."""
    monkeypatch.setattr(settings, "_config", config)
    return config


@pytest.fixture
def completed_session() -> dict:
    """A paid checkout.session.completed object."""
    return {
        "id": "cs_test_123",
        "object": "checkout.session",
        "payment_intent": "pi_test_123",
        "payment_status": "paid",
        "customer_details": {"email": "jane@example.com"},
        "customer_email": None,
        "metadata": {"full_name": "Jane Doe", "source": "nostosprogram.com"},
    }


def stripe_object(obj: dict, event_type: str = "checkout.session.completed"):
    """Materialize `obj` as the SDK's StripeObject by verifying a signed event."""
    payload = event_payload(event_type, obj)
    event = stripe.Webhook.construct_event(payload, sign_payload(payload), WEBHOOK_SECRET)
    return event["data"]["object"]

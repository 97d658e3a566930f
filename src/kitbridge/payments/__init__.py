"""Stripe checkout, webhook and session-status handlers.

Handles checkout session creation, webhook verification and forwarding of
paying customers to Kit, and post-payment status polling.
"""

from kitbridge.payments.checkout import create_checkout_session
from kitbridge.payments.status import verify_checkout_session
from kitbridge.payments.webhooks import handle_webhook

__all__ = [
    "create_checkout_session",
    "handle_webhook",
    "verify_checkout_session",
]

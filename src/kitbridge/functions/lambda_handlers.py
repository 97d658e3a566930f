"""Serverless entry points (Netlify Functions / AWS Lambda event shape).

Each handler takes the host's event dict and returns
{statusCode, headers, body}.
"""

import asyncio
import logging

from kitbridge.config.settings import get_config
from kitbridge.functions.base import FunctionEvent
from kitbridge.payments import (
    create_checkout_session,
    handle_webhook,
    verify_checkout_session,
)

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    # No-op when the host already installed handlers
    logging.basicConfig(
        level=get_config().log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_checkout_session_handler(event: dict, context=None) -> dict:
    """POST create-checkout-session."""
    _configure_logging()
    return create_checkout_session(FunctionEvent.from_event(event)).to_dict()


def stripe_webhook_handler(event: dict, context=None) -> dict:
    """POST stripe-webhook."""
    _configure_logging()
    response = asyncio.run(handle_webhook(FunctionEvent.from_event(event)))
    return response.to_dict()


def verify_checkout_session_handler(event: dict, context=None) -> dict:
    """GET verify-checkout-session."""
    _configure_logging()
    return verify_checkout_session(FunctionEvent.from_event(event)).to_dict()

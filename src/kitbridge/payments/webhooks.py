"""Stripe webhook handler: verify, then forward paying customers to Kit.

Only checkout.session.completed triggers work. Every failure after signature
verification is acknowledged with 200 {processed: false} so Stripe does not
retry a delivery that cannot succeed without intervention; those failures are
visible in the logs only.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import stripe

from kitbridge.config.settings import AppConfig, get_config
from kitbridge.functions.base import (
    FunctionEvent,
    FunctionResponse,
    json_response,
    method_not_allowed,
    missing_configuration,
)
from kitbridge.payments.idempotency import SyncGuard, get_sync_guard
from kitbridge.payments.stripe_objects import to_plain_dict
from kitbridge.subscribers import SubscriberAPIError, SubscriberBackend, get_backend

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
SIGNATURE_HEADER = "stripe-signature"


class ForwardingError(Exception):
    """A subscriber API call failed for a reason other than 'already exists'."""


@dataclass
class SubscriberIdentity:
    """Customer identity extracted from a completed checkout session."""

    email: str
    first_name: str = ""
    fields: dict[str, str] = field(default_factory=dict)


def extract_first_name(metadata: dict) -> str:
    """First name from session metadata, falling back to the first word of full_name."""
    first_name = str(metadata.get("first_name") or "").strip()
    if first_name:
        return first_name
    full_name = str(metadata.get("full_name") or "").strip()
    return full_name.split()[0] if full_name else ""


def extract_email(session: dict) -> str:
    """Customer email from captured customer details, falling back to customer_email."""
    customer_details = session.get("customer_details") or {}
    return customer_details.get("email") or session.get("customer_email") or ""


def extract_identity(session: dict) -> Optional[SubscriberIdentity]:
    """
    Extract the subscriber identity from a Checkout Session.

    Args:
        session: Stripe Checkout Session object

    Returns:
        SubscriberIdentity, or None if the session carries no email
    """
    email = extract_email(session)
    if not email:
        return None

    metadata = session.get("metadata") or {}
    fields = {}
    objective = str(metadata.get("objective") or "").strip()
    if objective:
        fields["objective"] = objective

    return SubscriberIdentity(
        email=email,
        first_name=extract_first_name(metadata),
        fields=fields,
    )


async def _call_tolerating_existing(step: str, call) -> None:
    """
    Await a subscriber API call, treating 'already exists' as success.

    Args:
        step: Step name for logging
        call: Awaitable performing the request

    Raises:
        ForwardingError: On any other non-success response
    """
    try:
        await call
    except SubscriberAPIError as e:
        if e.already_exists:
            logger.info(f"Kit {step}: subscriber already exists ({e.status}) - continuing")
            return
        raise ForwardingError(str(e)) from e


async def forward_to_subscriber_api(
    identity: SubscriberIdentity,
    backend: SubscriberBackend,
    config: AppConfig,
) -> None:
    """
    Upsert the subscriber, then enroll in the sequence and/or apply the tag.

    Calls are strictly sequential: the subscriber must exist before it can be
    enrolled or tagged.

    Args:
        identity: Customer identity
        backend: Subscriber API backend
        config: Application configuration

    Raises:
        ForwardingError: On a non-tolerated subscriber API failure
    """
    await _call_tolerating_existing(
        "upsert",
        backend.upsert_subscriber(identity.email, identity.first_name, identity.fields),
    )
    logger.info(f"Kit subscriber upsert done for {identity.email}")

    if config.kit_sequence_id:
        await _call_tolerating_existing(
            "sequence",
            backend.add_to_sequence(config.kit_sequence_id, identity.email, identity.first_name),
        )
        logger.info(f"Kit sequence subscribed: {config.kit_sequence_id}")

    if config.kit_tag_id:
        await _call_tolerating_existing(
            "tag",
            backend.tag_subscriber(config.kit_tag_id, identity.email),
        )
        logger.info(f"Kit tag applied: {config.kit_tag_id}")


async def handle_webhook(
    event: FunctionEvent,
    config: Optional[AppConfig] = None,
    backend: Optional[SubscriberBackend] = None,
) -> FunctionResponse:
    """
    Handle and verify Stripe webhook events.

    Args:
        event: Inbound invocation carrying the raw (possibly base64) body
        config: Optional config override (defaults to get_config())
        backend: Optional subscriber backend override (defaults to the
                 configured Kit API version)

    Returns:
        FunctionResponse: 405/500/400 before verification succeeds, 200 after
    """
    if event.http_method != "POST":
        return method_not_allowed()

    config = config or get_config()

    missing = config.missing_webhook_settings()
    if missing:
        return missing_configuration(missing)

    sig_header = event.header(SIGNATURE_HEADER)
    if not sig_header:
        logger.error("Missing stripe-signature header")
        return json_response(400, {"error": "Missing Stripe signature"})

    stripe.api_key = config.stripe_secret_key.get_secret_value()
    logger.info(f"Incoming webhook. base64={event.is_base64_encoded}")

    # Verify webhook signature over the exact request bytes
    try:
        payload = event.raw_body()
        stripe_event = stripe.Webhook.construct_event(
            payload,
            sig_header,
            config.stripe_webhook_secret.get_secret_value(),
        )
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.error(f"Webhook signature verification failed: {e}")
        return json_response(
            400,
            {"error": f"Webhook signature verification failed: {e}"},
        )

    event_type = stripe_event["type"]
    logger.info(f"Received webhook: {event_type}")

    if event_type != CHECKOUT_COMPLETED:
        return json_response(200, {"received": True, "ignored": True, "type": event_type})

    try:
        return await _handle_checkout_completed(
            to_plain_dict(stripe_event["data"]["object"]),
            config,
            backend if backend is not None else get_backend(config),
            get_sync_guard(config.kit_sync_strategy),
        )
    except Exception as e:
        # Acknowledge anyway so Stripe does not retry endlessly
        logger.exception(f"Error processing webhook {event_type}: {e}")
        return json_response(200, {"received": True, "processed": False})


async def _handle_checkout_completed(
    session: dict,
    config: AppConfig,
    backend: SubscriberBackend,
    guard: SyncGuard,
) -> FunctionResponse:
    """
    Handle checkout.session.completed event.

    Args:
        session: Stripe Checkout Session object
        config: Application configuration
        backend: Subscriber API backend
        guard: Idempotency guard for the configured strategy

    Returns:
        200 FunctionResponse describing the outcome
    """
    identity = extract_identity(session)
    if identity is None:
        logger.error(
            f"checkout.session.completed {session.get('id')} missing customer email - skipping"
        )
        return json_response(
            200,
            {"received": True, "processed": False, "error": "Missing customer email"},
        )

    logger.info(f"checkout.session.completed for {identity.email}")

    if guard.already_synced(session):
        return json_response(200, {"received": True, "processed": True, "idempotent": True})

    try:
        await forward_to_subscriber_api(identity, backend, config)
    except ForwardingError as e:
        logger.error(f"Kit forwarding failed for {identity.email}: {e}")
        return json_response(200, {"received": True, "processed": False})

    try:
        guard.mark_synced(
            session,
            sequence_id=config.kit_sequence_id,
            tag_id=config.kit_tag_id,
        )
    except stripe.StripeError as e:
        # Forward already happened; a replay will at worst re-upsert
        logger.error(f"Failed to mark session {session.get('id')} as synced: {e}")

    return json_response(200, {"received": True, "processed": True})

"""Cross-invocation sync guards for the Stripe webhook.

The only shared state is the `kit_sync_completed` flag on the payment intent's
metadata. The checkout handler seeds it with "false"; the webhook flips it to
"true" once every configured Kit call succeeded.
"""

import logging
from typing import Optional

import stripe

from kitbridge.payments.stripe_objects import to_plain_dict

logger = logging.getLogger(__name__)

SYNC_FLAG = "kit_sync_completed"


class SyncGuard:
    """No-op guard: every delivery is forwarded (upserts are idempotent remotely)."""

    strategy = "none"

    def already_synced(self, session: dict) -> bool:
        """Return True if the session's customer was already forwarded."""
        return False

    def mark_synced(
        self,
        session: dict,
        sequence_id: str = "",
        tag_id: str = "",
    ) -> None:
        """Record a successful forward."""
        return None


class PaymentIntentSyncGuard(SyncGuard):
    """Guard backed by the payment intent's metadata flag."""

    strategy = "payment_intent"

    @staticmethod
    def _payment_intent_id(session: dict) -> Optional[str]:
        payment_intent = session.get("payment_intent")
        if isinstance(payment_intent, str):
            return payment_intent or None
        if payment_intent:
            # Expanded object
            return payment_intent.get("id")
        return None

    def already_synced(self, session: dict) -> bool:
        """
        Fetch the payment intent and inspect its sync flag.

        Sessions without a payment intent cannot be guarded and are
        always forwarded.

        Raises:
            stripe.StripeError: On Stripe API errors
        """
        payment_intent_id = self._payment_intent_id(session)
        if not payment_intent_id:
            logger.info(
                f"Session {session.get('id')} has no payment intent - idempotency check skipped"
            )
            return False

        intent = to_plain_dict(stripe.PaymentIntent.retrieve(payment_intent_id))
        metadata = intent.get("metadata") or {}
        synced = metadata.get(SYNC_FLAG) == "true"

        if synced:
            logger.info(f"Payment intent {payment_intent_id} already synced to Kit")

        return synced

    def mark_synced(
        self,
        session: dict,
        sequence_id: str = "",
        tag_id: str = "",
    ) -> None:
        """
        Write kit_sync_completed=true (plus the Kit ids used) onto the intent.

        Raises:
            stripe.StripeError: On Stripe API errors
        """
        payment_intent_id = self._payment_intent_id(session)
        if not payment_intent_id:
            return

        stripe.PaymentIntent.modify(
            payment_intent_id,
            metadata={
                SYNC_FLAG: "true",
                "kit_sequence_id": sequence_id or "",
                "kit_tag_id": tag_id or "",
            },
        )
        logger.info(f"Marked payment intent {payment_intent_id} as synced")


GUARDS: dict[str, type[SyncGuard]] = {
    "none": SyncGuard,
    "payment_intent": PaymentIntentSyncGuard,
}


def get_sync_guard(strategy: str) -> SyncGuard:
    """Build the guard for a configured strategy name."""
    try:
        return GUARDS[strategy]()
    except KeyError:
        raise ValueError(f"Unknown sync strategy: {strategy}")

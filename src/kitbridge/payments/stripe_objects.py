"""Conversion of Stripe SDK objects into plain dicts."""

from typing import Any


def to_plain_dict(obj: Any) -> dict:
    """
    Convert a Stripe object (Session, PaymentIntent, ...) into a plain dict.

    StripeObject is not a dict on current SDK releases, so `.get` is not
    available on it. Plain dicts pass through unchanged.

    Args:
        obj: StripeObject, dict, or None

    Returns:
        Recursive plain-dict copy ({} for None)
    """
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return obj
    return obj.to_dict()

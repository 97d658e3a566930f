"""Stripe Checkout to Kit subscriber bridge."""

__version__ = "0.1.0"

"""Pluggable subscriber-API backends (one per Kit API version)."""

from kitbridge.config.settings import AppConfig
from kitbridge.subscribers.base import (
    SubscriberAPIError,
    SubscriberBackend,
    is_already_exists,
)
from kitbridge.subscribers.convertkit_v3 import ConvertKitV3Backend
from kitbridge.subscribers.kit_v4 import KitV4Backend

BACKENDS: dict[str, type[SubscriberBackend]] = {
    "v4": KitV4Backend,
    "v3": ConvertKitV3Backend,
}


def get_backend(config: AppConfig) -> SubscriberBackend:
    """
    Build the subscriber backend selected by configuration.

    Args:
        config: Application configuration

    Returns:
        SubscriberBackend for config.kit_api_version

    Raises:
        ValueError: If the configured version has no backend
    """
    try:
        backend_cls = BACKENDS[config.kit_api_version]
    except KeyError:
        raise ValueError(f"Unknown subscriber API version: {config.kit_api_version}")

    return backend_cls(
        api_key=config.kit_api_key.get_secret_value(),
        base_url=config.kit_api_base_url or None,
        timeout_seconds=config.kit_request_timeout_seconds,
    )


__all__ = [
    # ABC
    "SubscriberBackend",
    "SubscriberAPIError",
    "is_already_exists",
    # Concrete implementations
    "KitV4Backend",
    "ConvertKitV3Backend",
    "get_backend",
]

"""Application entry point."""

import logging
import sys

from kitbridge.config import AppConfig, get_config
from kitbridge.server import serve

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def load_config() -> AppConfig:
    """
    Load configuration before anything else so it can drive logging.

    Raises:
        SystemExit: On configuration validation errors
    """
    try:
        return get_config()
    except Exception as e:
        # No config means no configured level: fall back to the default one
        logging.basicConfig(format=LOG_FORMAT)
        logger.error(f"Configuration invalid: {e}")
        raise SystemExit(1) from e


def check_config(config: AppConfig) -> None:
    """
    Boot check: report which handlers are missing settings.

    Handlers still start when settings are missing; they answer 500 until the
    environment is fixed.
    """
    logger.info(
        f"Configuration loaded: kit_api_version={config.kit_api_version}, "
        f"sync_strategy={config.kit_sync_strategy}"
    )

    for name, missing in (
        ("create-checkout-session", config.missing_checkout_settings()),
        ("stripe-webhook", config.missing_webhook_settings()),
        ("verify-checkout-session", config.missing_status_settings()),
    ):
        if missing:
            logger.warning(f"{name} is missing configuration: {', '.join(missing)}")


def main() -> None:
    """Main entry point with logging configuration."""
    config = load_config()
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)

    try:
        check_config(config)
        serve()
    except SystemExit:
        raise
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Application configuration schema and validation."""

from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    stripe_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe secret API key",
    )
    stripe_price_id: str = Field(
        default="",
        description="Stripe price charged by the checkout session",
    )
    stripe_webhook_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe webhook signing secret (whsec_...)",
    )
    site_url: str = Field(
        default="",
        description="Public site base URL used for success/cancel redirects",
    )
    checkout_source: str = Field(
        default="nostosprogram.com",
        description="Static source tag written into checkout metadata",
    )
    kit_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Kit (ConvertKit) API key",
    )
    kit_tag_id: str = Field(
        default="",
        description="Kit tag applied to paying customers",
    )
    kit_sequence_id: str = Field(
        default="",
        description="Kit sequence paying customers are enrolled in",
    )
    kit_api_version: Literal["v4", "v3"] = Field(
        default="v4",
        description="Subscriber API backend version",
    )
    kit_api_base_url: str = Field(
        default="",
        description="Override for the subscriber API base URL (empty = backend default)",
    )
    kit_sync_strategy: Literal["payment_intent", "none"] = Field(
        default="payment_intent",
        description="Webhook idempotency strategy",
    )
    kit_request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=60,
        description="Total timeout for a single subscriber API request",
    )
    server_port: int = Field(
        default=8888,
        ge=1,
        le=65535,
        description="Port for the local aiohttp server",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("site_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Strip exactly one trailing slash from the site URL."""
        v = v.strip()
        if v.endswith("/"):
            return v[:-1]
        return v

    def missing_checkout_settings(self) -> list[str]:
        """Return env var names required by the checkout handler that are unset."""
        missing = []
        if not self.stripe_secret_key.get_secret_value():
            missing.append("STRIPE_SECRET_KEY")
        if not self.stripe_price_id:
            missing.append("STRIPE_PRICE_ID")
        if not self.site_url:
            missing.append("SITE_URL")
        return missing

    def missing_webhook_settings(self) -> list[str]:
        """Return env var names required by the webhook handler that are unset.

        At least one of KIT_TAG_ID / KIT_SEQUENCE_ID must be present.
        """
        missing = []
        if not self.stripe_secret_key.get_secret_value():
            missing.append("STRIPE_SECRET_KEY")
        if not self.stripe_webhook_secret.get_secret_value():
            missing.append("STRIPE_WEBHOOK_SECRET")
        if not self.kit_api_key.get_secret_value():
            missing.append("KIT_API_KEY")
        if not self.kit_tag_id and not self.kit_sequence_id:
            missing.append("KIT_TAG_ID or KIT_SEQUENCE_ID")
        return missing

    def missing_status_settings(self) -> list[str]:
        """Return env var names required by the status handler that are unset."""
        if not self.stripe_secret_key.get_secret_value():
            return ["STRIPE_SECRET_KEY"]
        return []


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create the singleton AppConfig instance."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config

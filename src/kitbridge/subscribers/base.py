"""Abstract subscriber-API interface shared by all backend versions."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

logger = logging.getLogger(__name__)

# Response-body markers meaning "subscriber already on the list" (case-insensitive)
ALREADY_EXISTS_MARKERS = ("already exists", "has already been taken", "email_address")


def is_already_exists(body: str) -> bool:
    """Check whether an error body says the subscriber already exists."""
    text = (body or "").lower()
    return any(marker in text for marker in ALREADY_EXISTS_MARKERS)


class SubscriberAPIError(Exception):
    """Non-success response from the subscriber API."""

    def __init__(self, status: int, path: str, body: str):
        self.status = status
        self.path = path
        self.body = body
        super().__init__(f"Kit API error ({status}) on {path}: {body}")

    @property
    def already_exists(self) -> bool:
        """True when the failure only means the subscriber is already present."""
        return is_already_exists(self.body)


class SubscriberBackend(ABC):
    """
    Abstract subscriber-management API.

    Implementations exist per API version; all calls are single sequential
    POSTs with no local retry.
    """

    name: str = "abstract"
    default_base_url: str = ""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_seconds: float = 10.0,
    ):
        self.api_key = api_key
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds

    @abstractmethod
    async def upsert_subscriber(
        self,
        email: str,
        first_name: str = "",
        fields: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """
        Create or update a subscriber keyed by email.

        Args:
            email: Subscriber email address
            first_name: Optional first name
            fields: Optional custom field map

        Returns:
            Decoded response body

        Raises:
            SubscriberAPIError: On non-2xx responses
        """
        pass

    @abstractmethod
    async def add_to_sequence(
        self,
        sequence_id: str,
        email: str,
        first_name: str = "",
    ) -> dict[str, Any]:
        """
        Enroll a subscriber in a sequence.

        Raises:
            SubscriberAPIError: On non-2xx responses
        """
        pass

    @abstractmethod
    async def tag_subscriber(self, tag_id: str, email: str) -> dict[str, Any]:
        """
        Apply a tag to a subscriber.

        Raises:
            SubscriberAPIError: On non-2xx responses
        """
        pass

    def _headers(self) -> dict[str, str]:
        """Request headers; subclasses add authentication."""
        return {"Content-Type": "application/json"}

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """
        POST a JSON payload and decode the response.

        Args:
            path: Path relative to base_url (leading slash)
            payload: JSON body

        Returns:
            Decoded JSON body, or {"raw": text} if the body is not JSON

        Raises:
            SubscriberAPIError: On non-2xx responses
            aiohttp.ClientError: On transport failures
            asyncio.TimeoutError: On timeout
        """
        url = f"{self.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, json=payload, headers=self._headers()) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise SubscriberAPIError(resp.status, path, text)

        logger.debug(f"{self.name} POST {path} -> {resp.status}")

        try:
            return json.loads(text) if text else {}
        except ValueError:
            return {"raw": text}

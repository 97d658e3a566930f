"""Kit API v4 subscriber backend."""

from typing import Any, Optional

from kitbridge.subscribers.base import SubscriberBackend


class KitV4Backend(SubscriberBackend):
    """
    Kit v4 backend (https://api.kit.com/v4).

    Authenticates with the API key in headers. v4 accepts API keys as a
    bearer token as well as via X-Kit-Api-Key; both are sent.
    """

    name = "kit-v4"
    default_base_url = "https://api.kit.com/v4"

    def _headers(self) -> dict[str, str]:
        return {
            **super()._headers(),
            "Authorization": f"Bearer {self.api_key}",
            "X-Kit-Api-Key": self.api_key,
        }

    async def upsert_subscriber(
        self,
        email: str,
        first_name: str = "",
        fields: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        return await self._post(
            "/subscribers",
            {
                "email_address": email,
                "first_name": first_name,
                "fields": fields or {},
            },
        )

    async def add_to_sequence(
        self,
        sequence_id: str,
        email: str,
        first_name: str = "",
    ) -> dict[str, Any]:
        payload = {"email_address": email}
        if first_name:
            payload["first_name"] = first_name
        return await self._post(f"/sequences/{sequence_id}/subscribers", payload)

    async def tag_subscriber(self, tag_id: str, email: str) -> dict[str, Any]:
        return await self._post(f"/tags/{tag_id}/subscribers", {"email_address": email})

"""ConvertKit API v3 subscriber backend."""

from typing import Any, Optional

from kitbridge.subscribers.base import SubscriberBackend


class ConvertKitV3Backend(SubscriberBackend):
    """
    Legacy ConvertKit v3 backend (https://api.convertkit.com/v3).

    v3 has no header authentication: the API key travels in every JSON body,
    and tag/sequence enrollment use the /subscribe path segment.
    """

    name = "convertkit-v3"
    default_base_url = "https://api.convertkit.com/v3"

    def _payload(self, email: str, first_name: str = "") -> dict[str, Any]:
        payload: dict[str, Any] = {"api_key": self.api_key, "email": email}
        if first_name:
            payload["first_name"] = first_name
        return payload

    async def upsert_subscriber(
        self,
        email: str,
        first_name: str = "",
        fields: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        payload = self._payload(email, first_name)
        if fields:
            payload["fields"] = fields
        return await self._post("/subscribers", payload)

    async def add_to_sequence(
        self,
        sequence_id: str,
        email: str,
        first_name: str = "",
    ) -> dict[str, Any]:
        return await self._post(
            f"/sequences/{sequence_id}/subscribe",
            self._payload(email, first_name),
        )

    async def tag_subscriber(self, tag_id: str, email: str) -> dict[str, Any]:
        return await self._post(f"/tags/{tag_id}/subscribe", self._payload(email))

"""HTTP client for the feed-retrieval service"""

import logging
from typing import List, Optional

import httpx

from .errors import NetworkError, ServerError
from .models import FeedSnapshot, Subscription

logger = logging.getLogger(__name__)

# What a payload of the wrong shape raises while being read into models
MALFORMED_PAYLOAD = (AttributeError, TypeError, ValueError)


class FeedServiceClient:
    """Thin async wrapper over the service's fixed HTTP contract

    Transport failures surface as NetworkError, error responses as
    ServerError carrying the service's ``{"error": ...}`` message.
    """

    def __init__(self, base_url: str = "", client: Optional[httpx.AsyncClient] = None, timeout: float = 60.0):
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={'User-Agent': 'Feed Subscription Client/1.0'}
        )

    async def aclose(self):
        await self.client.aclose()

    async def list_subscriptions(self) -> List[Subscription]:
        response = await self._request("GET", "/feeds")
        payload = self._json(response)
        if not isinstance(payload, list):
            raise ServerError("Unexpected subscription list from feed service", response.status_code)
        try:
            return [Subscription.from_payload(feed) for feed in payload]
        except MALFORMED_PAYLOAD:
            raise ServerError("Unexpected subscription entry from feed service", response.status_code)

    async def add_subscription(self, url: str) -> Subscription:
        response = await self._request("POST", "/feeds", json={"url": url})
        payload = self._json(response)
        try:
            return Subscription.from_payload(payload)
        except MALFORMED_PAYLOAD:
            raise ServerError("Unexpected response when adding feed", response.status_code)

    async def get_feed(self, url: str) -> FeedSnapshot:
        response = await self._request("GET", "/feed", params={"url": url})
        payload = self._json(response)
        if not isinstance(payload, dict):
            raise ServerError("Unexpected feed content from feed service", response.status_code)
        try:
            return FeedSnapshot.from_payload(payload)
        except MALFORMED_PAYLOAD:
            raise ServerError("Unexpected feed item from feed service", response.status_code)

    async def delete_subscription(self, url: str) -> None:
        await self._request("DELETE", "/feed", params={"url": url})

    def export_url(self, url: str) -> str:
        """Hyperlink target for the RSS export of a subscription"""
        return str(self.client.base_url.join("/export").copy_merge_params({"url": url}))

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        logger.debug(f"{method} {path} {kwargs.get('params') or kwargs.get('json') or ''}")
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e!r}")
            raise NetworkError(str(e) or e.__class__.__name__) from e

        if response.is_error:
            server_message = self._error_message(response)
            logger.warning(f"{method} {path} -> HTTP {response.status_code}: {server_message}")
            raise ServerError(
                f"HTTP {response.status_code} from {method} {path}",
                status_code=response.status_code,
                server_message=server_message,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response):
        try:
            return response.json()
        except ValueError:
            raise ServerError("Feed service returned a malformed response", response.status_code)

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        try:
            payload = response.json()
        except ValueError:
            return None
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        return None

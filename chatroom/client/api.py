"""
Room API client.
Thin async wrapper over the /api/room endpoints.
"""
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class RoomApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class RoomApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json", **(headers or {})},
        )

    async def __aenter__(self) -> "RoomApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _path(self, room_id: str, action: str) -> str:
        return f"/api/room/{quote(room_id, safe='')}/{action}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RoomApiError(f"Transport error: {e}") from e
        try:
            body = response.json()
        except ValueError:
            body = {"error": response.text or response.reason_phrase}
        if response.is_error:
            message = body.get("error") if isinstance(body, dict) else None
            raise RoomApiError(
                message or response.reason_phrase,
                status_code=response.status_code,
                code=body.get("code") if isinstance(body, dict) else None,
            )
        return body

    async def fetch_messages(self, room_id: str, user: Optional[str] = None) -> Dict[str, Any]:
        """Room snapshot. Passing user doubles as a presence heartbeat."""
        params = {"user": user} if user else None
        return await self._request("GET", self._path(room_id, "messages"), params=params)

    async def join(self, room_id: str, username: str) -> Dict[str, Any]:
        return await self._request("POST", self._path(room_id, "join"), json={"username": username})

    async def send(self, room_id: str, username: str, message: str) -> Dict[str, Any]:
        return await self._request(
            "POST", self._path(room_id, "send"), json={"username": username, "message": message}
        )

    async def destroy(self, room_id: str) -> Dict[str, Any]:
        return await self._request("POST", self._path(room_id, "destroy"))

"""
HTTP client for the service's progress routes, authenticated with a session token.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from bingebox.core.config import settings

logger = logging.getLogger(__name__)


class RemoteSyncError(Exception):
    """A progress route call failed (transport error or non-2xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProgressApiClient:
    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.token}", "User-Agent": settings.user_agent},
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteSyncError(f"{method} {path} failed: {e}") from e

        if not response.is_success:
            try:
                detail = response.json().get("error")
            except ValueError:
                detail = response.text
            raise RemoteSyncError(f"{method} {path} returned {response.status_code}: {detail}", response.status_code)
        return response.json() if response.content else None

    async def fetch_all(self) -> List[Dict[str, Any]]:
        data = await self._request("GET", "/api/progress")
        return (data or {}).get("items", [])

    async def upsert_many(self, rows: List[Dict[str, Any]]) -> int:
        data = await self._request("POST", "/api/progress", json={"items": rows})
        return (data or {}).get("saved", len(rows))

    async def upsert_one(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/progress/{row['media_type']}/{row['media_id']}", json=row)

    async def delete_one(self, media_type: str, media_id: Any) -> None:
        await self._request("DELETE", f"/api/progress/{media_type}/{media_id}")

    async def delete_all(self) -> None:
        await self._request("DELETE", "/api/progress")

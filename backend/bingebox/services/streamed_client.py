"""
Client for the streamed.su sports directory.

One helper per upstream endpoint, each with its own cache window. Upstream
failures propagate (``httpx.HTTPStatusError`` or transport errors); the sports
routes turn them into a 500.
"""
import logging
from typing import Any

from bingebox.core.config import settings
from bingebox.services import http_client
from bingebox.services.response_cache import cached_json

logger = logging.getLogger(__name__)

SPORTS_REVALIDATE = 3600
LIVE_REVALIDATE = 60
DEFAULT_REVALIDATE = 300


async def _fetch(endpoint: str, revalidate: int = DEFAULT_REVALIDATE) -> Any:
    url = f"{settings.streamed_base_url}{endpoint}"

    async def make_request():
        async with http_client.make_client() as client:
            resp = await client.get(url)
            if resp.status_code != 200:
                logger.warning(f"Streamed API {endpoint} returned {resp.status_code}")
            resp.raise_for_status()
            return resp.json()

    return await cached_json(f"streamed:{endpoint}", revalidate, make_request)


async def fetch_sports() -> Any:
    return await _fetch("/sports", SPORTS_REVALIDATE)


async def fetch_live_matches() -> Any:
    return await _fetch("/matches/live", LIVE_REVALIDATE)


async def fetch_popular_matches() -> Any:
    return await _fetch("/matches/all/popular")


async def fetch_all_matches() -> Any:
    return await _fetch("/matches/all")


async def fetch_today_matches() -> Any:
    return await _fetch("/matches/all-today")


async def fetch_sport_matches(sport: str) -> Any:
    return await _fetch(f"/matches/{sport}")


async def fetch_sport_popular_matches(sport: str) -> Any:
    return await _fetch(f"/matches/{sport}/popular")


async def fetch_streams(source: str, match_id: str) -> Any:
    return await _fetch(f"/stream/{source}/{match_id}")

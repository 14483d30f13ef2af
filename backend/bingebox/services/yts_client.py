"""
YTS torrent index client.

Movie lookups by IMDB id retry 5xx and transport errors with exponential
backoff (1s, 2s, 4s); the index is known to return 502s under load.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from bingebox.core.config import settings
from bingebox.services import http_client

logger = logging.getLogger(__name__)

LIST_ENDPOINTS = ("list_movies", "movie_details", "movie_suggestions")


async def fetch_with_retry(url: str, params: Optional[Dict[str, Any]] = None, max_retries: int = 3, initial_delay: float = 1.0, sleep=asyncio.sleep) -> httpx.Response:
    """GET ``url``; 5xx and transport errors are retried, other statuses returned as-is."""
    last_error: Optional[Exception] = None

    for attempt in range(max_retries):
        try:
            async with http_client.make_client() as client:
                response = await client.get(url, params=params)
            if response.is_success or not response.is_server_error:
                return response
            last_error = httpx.HTTPStatusError(
                f"HTTP error {response.status_code}", request=response.request, response=response
            )
            if response.status_code == 502:
                logger.warning(f"YTS API returned 502 Bad Gateway. Retrying ({attempt + 1}/{max_retries})...")
        except httpx.TransportError as e:
            last_error = e

        await sleep(initial_delay * (2 ** attempt))

    raise last_error or RuntimeError("Failed after maximum retries")


async def search_movie_by_imdb(imdb_id: str, sleep=asyncio.sleep) -> Optional[Dict]:
    """The YTS movie for ``imdb_id``, or None when absent or mismatched."""
    try:
        response = await fetch_with_retry(
            f"{settings.yts_base_url}/list_movies.json",
            params={"query_term": imdb_id},
            sleep=sleep,
        )
        if not response.is_success:
            logger.error(f"Failed to fetch from YTS API: {response.status_code}")
            return None

        data = response.json()
        movies = (data.get("data") or {}).get("movies") or []
        if data.get("status") != "ok" or not movies:
            logger.info(f"No movie found on YTS for IMDB ID: {imdb_id}")
            return None

        # YTS falls back to fuzzy matches; only accept the exact title
        movie = movies[0]
        if movie.get("imdb_code") != imdb_id:
            logger.error(
                f"YTS API returned movie with incorrect IMDB ID. Requested: {imdb_id}, "
                f"Got: {movie.get('imdb_code')} ({movie.get('title')})"
            )
            return None
        return movie
    except Exception as e:
        logger.error(f"Error fetching from YTS API: {e}")
        return None


async def list_movies(endpoint: str = "list_movies", **filters) -> Dict:
    """Pass-through listing; raises on upstream failure."""
    params = {k: v for k, v in filters.items() if v not in (None, "")}
    async with http_client.make_client() as client:
        response = await client.get(f"{settings.yts_base_url}/{endpoint}.json", params=params)
        response.raise_for_status()
        return response.json()

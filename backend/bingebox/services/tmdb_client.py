"""
TMDB client for BingeBox.
- Async httpx client, API key from settings (query parameter).
- Responses cached in Redis for the endpoint's revalidate window.
- Never raises for upstream failures: logs and returns an empty result page.
"""
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from bingebox.core.config import settings
from bingebox.services import http_client
from bingebox.services.response_cache import cached_json

logger = logging.getLogger(__name__)

DEFAULT_REVALIDATE = 3600
GENRES_REVALIDATE = 604800  # 7 days

DISCOVER_PARAMS = (
    "page",
    "sort_by",
    "with_genres",
    "vote_average.gte",
    "vote_average.lte",
    "primary_release_date.gte",
    "primary_release_date.lte",
    "first_air_date.gte",
    "first_air_date.lte",
    "with_watch_providers",
    "watch_region",
    "year",
    "primary_release_year",
    "first_air_date_year",
    "with_original_language",
)


def _empty() -> Dict[str, Any]:
    return {"results": []}


async def fetch_from_tmdb(endpoint: str, params: Optional[Dict[str, Any]] = None, revalidate: int = DEFAULT_REVALIDATE) -> Dict[str, Any]:
    """GET ``endpoint`` from TMDB; empty page on any failure."""
    if not settings.tmdb_api_key:
        logger.error("TMDB_API_KEY is not configured")
        return _empty()

    params = {k: v for k, v in (params or {}).items() if v is not None}
    # Cache key never includes the API key
    cache_key = f"tmdb:{endpoint}?{urlencode(sorted(params.items()))}"
    url = f"{settings.tmdb_base_url}{endpoint}"

    async def make_request():
        async with http_client.make_client() as client:
            resp = await client.get(url, params={**params, "api_key": settings.tmdb_api_key})
            resp.raise_for_status()
            return resp.json()

    try:
        return await cached_json(cache_key, revalidate, make_request)
    except httpx.HTTPStatusError as e:
        logger.error(f"Failed to fetch from TMDB {endpoint}: {e.response.status_code}")
    except Exception as e:
        logger.error(f"Error fetching from TMDB {endpoint}: {e}")
    return _empty()


async def fetch_trending(page: int = 1) -> Dict:
    response = await fetch_from_tmdb("/trending/all/day", {"page": page})
    if response.get("results"):
        response["results"] = [item for item in response["results"] if item.get("media_type") != "person"]
    return response


async def fetch_popular_movies(page: int = 1) -> Dict:
    return await fetch_from_tmdb("/movie/popular", {"page": page})


async def fetch_top_rated_movies(page: int = 1) -> Dict:
    return await fetch_from_tmdb("/movie/top_rated", {"page": page})


async def fetch_upcoming_movies(page: int = 1) -> Dict:
    return await fetch_from_tmdb("/movie/upcoming", {"page": page})


async def fetch_now_playing_movies(page: int = 1) -> Dict:
    return await fetch_from_tmdb("/movie/now_playing", {"page": page})


async def fetch_popular_shows(page: int = 1) -> Dict:
    return await fetch_from_tmdb("/tv/popular", {"page": page})


async def fetch_top_rated_shows(page: int = 1) -> Dict:
    return await fetch_from_tmdb("/tv/top_rated", {"page": page})


async def fetch_airing_today_shows(page: int = 1) -> Dict:
    return await fetch_from_tmdb("/tv/airing_today", {"page": page})


async def fetch_on_the_air_shows(page: int = 1) -> Dict:
    return await fetch_from_tmdb("/tv/on_the_air", {"page": page})


async def fetch_movie_details(movie_id: int) -> Dict:
    return await fetch_from_tmdb(f"/movie/{movie_id}", {"append_to_response": "credits,similar,videos,external_ids"})


async def fetch_tv_details(tv_id: int) -> Dict:
    return await fetch_from_tmdb(f"/tv/{tv_id}", {"append_to_response": "credits,similar,videos,seasons"})


async def fetch_videos(media_type: str, media_id: int) -> Dict:
    return await fetch_from_tmdb(f"/{media_type}/{media_id}/videos")


async def search_multi(query: str, page: int = 1) -> Dict:
    return await fetch_from_tmdb("/search/multi", {"query": query, "page": page})


async def search_movies(query: str, page: int = 1) -> Dict:
    return await fetch_from_tmdb("/search/movie", {"query": query, "page": page})


async def search_tv(query: str, page: int = 1) -> Dict:
    return await fetch_from_tmdb("/search/tv", {"query": query, "page": page})


async def search_person(query: str, page: int = 1) -> Dict:
    return await fetch_from_tmdb("/search/person", {"query": query, "page": page})


async def fetch_person_details(person_id: int) -> Dict:
    return await fetch_from_tmdb(f"/person/{person_id}", {"append_to_response": "movie_credits,tv_credits"})


async def fetch_season_details(tv_id: int, season_number: int) -> Dict:
    return await fetch_from_tmdb(f"/tv/{tv_id}/season/{season_number}")


async def fetch_episode_details(tv_id: int, season_number: int, episode_number: int) -> Dict:
    return await fetch_from_tmdb(f"/tv/{tv_id}/season/{season_number}/episode/{episode_number}")


async def fetch_genres(media_type: str) -> Dict:
    return await fetch_from_tmdb(f"/genre/{media_type}/list", revalidate=GENRES_REVALIDATE)


async def discover(media_type: str, params: Optional[Dict[str, Any]] = None) -> Dict:
    """Discover movies or TV with the filter subset TMDB documents for both."""
    filters = {k: v for k, v in (params or {}).items() if k in DISCOVER_PARAMS and v not in (None, "")}
    endpoint = "/discover/tv" if media_type == "tv" else "/discover/movie"
    return await fetch_from_tmdb(endpoint, filters)


async def fetch_reviews(media_type: str, media_id: int) -> Dict:
    return await fetch_from_tmdb(f"/{media_type}/{media_id}/reviews")


async def fetch_genre_names(media_type: str, media_id: int) -> list:
    """Genre names for one title (used by the watchlist backfill)."""
    details = await fetch_from_tmdb(f"/{media_type}/{media_id}")
    return [g.get("name") for g in details.get("genres", []) if g.get("name")]


def find_trailer(videos: Dict) -> Optional[Dict]:
    """First YouTube trailer or teaser in a TMDB videos payload."""
    for video in videos.get("results", []):
        if video.get("site") == "YouTube" and video.get("type") in ("Trailer", "Teaser"):
            return video
    return None

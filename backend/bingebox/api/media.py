"""
media.py

Read-only TMDB proxy routes: lists, discovery, search and detail pages.
"""
import logging
from typing import Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, HTTPException, Request

from bingebox.services import tmdb_client

router = APIRouter()
logger = logging.getLogger(__name__)

SEARCHABLE_TYPES = ("movie", "tv", "person")


def _check_page(page: int) -> None:
    if page < 1 or page > 1000:
        raise HTTPException(status_code=400, detail="Page must be between 1 and 1000")


async def _paged(fetch: Callable[[int], Awaitable[Dict]], page: int, label: str) -> Dict:
    _check_page(page)
    try:
        return await fetch(page)
    except Exception as e:
        logger.error(f"Failed to fetch {label}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch {label}")


@router.get("/trending")
async def trending(page: int = 1):
    return await _paged(tmdb_client.fetch_trending, page, "trending content")


@router.get("/movies/popular")
async def popular_movies(page: int = 1):
    return await _paged(tmdb_client.fetch_popular_movies, page, "popular movies")


@router.get("/movies/top-rated")
async def top_rated_movies(page: int = 1):
    return await _paged(tmdb_client.fetch_top_rated_movies, page, "top-rated movies")


@router.get("/movies/upcoming")
async def upcoming_movies(page: int = 1):
    return await _paged(tmdb_client.fetch_upcoming_movies, page, "upcoming movies")


@router.get("/movies/now-playing")
async def now_playing_movies(page: int = 1):
    return await _paged(tmdb_client.fetch_now_playing_movies, page, "now playing movies")


@router.get("/tv/popular")
async def popular_shows(page: int = 1):
    return await _paged(tmdb_client.fetch_popular_shows, page, "popular TV shows")


@router.get("/tv/top-rated")
async def top_rated_shows(page: int = 1):
    return await _paged(tmdb_client.fetch_top_rated_shows, page, "top-rated TV shows")


@router.get("/tv/airing-today")
async def airing_today_shows(page: int = 1):
    return await _paged(tmdb_client.fetch_airing_today_shows, page, "TV shows airing today")


@router.get("/tv/on-the-air")
async def on_the_air_shows(page: int = 1):
    return await _paged(tmdb_client.fetch_on_the_air_shows, page, "TV shows on the air")


@router.get("/discover")
async def discover(request: Request, media_type: str = "movie"):
    """Every other query parameter is forwarded as a TMDB discover filter."""
    params = {k: v for k, v in request.query_params.items() if k != "media_type"}
    try:
        return await tmdb_client.discover("tv" if media_type == "tv" else "movie", params)
    except Exception as e:
        logger.error(f"Discover API error: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch discover results")


@router.get("/search")
async def search(query: Optional[str] = None, limit: int = 5):
    if not query:
        raise HTTPException(status_code=400, detail="Query parameter is required")
    try:
        data = await tmdb_client.search_multi(query)
        results = [r for r in data.get("results", []) if r.get("media_type") in SEARCHABLE_TYPES]
        return {"results": results[:max(limit, 0)]}
    except Exception as e:
        logger.error(f"Search API error: {e}")
        raise HTTPException(status_code=500, detail="Failed to search")


@router.get("/search/{media_type}")
async def search_by_type(media_type: str, query: Optional[str] = None, page: int = 1):
    searchers = {
        "movie": tmdb_client.search_movies,
        "tv": tmdb_client.search_tv,
        "person": tmdb_client.search_person,
    }
    if media_type not in searchers:
        raise HTTPException(status_code=400, detail="Invalid media type")
    if not query:
        raise HTTPException(status_code=400, detail="Query parameter is required")
    _check_page(page)
    try:
        return await searchers[media_type](query, page)
    except Exception as e:
        logger.error(f"Search API error ({media_type}): {e}")
        raise HTTPException(status_code=500, detail="Failed to search")


@router.get("/genres")
async def genres(media_type: str = "movie"):
    try:
        return await tmdb_client.fetch_genres("tv" if media_type == "tv" else "movie")
    except Exception as e:
        logger.error(f"Genres API error: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch genres")


@router.get("/trailer")
async def trailer(mediaType: Optional[str] = None, mediaId: Optional[int] = None):
    if not mediaType or mediaId is None:
        raise HTTPException(status_code=400, detail="Missing mediaType or mediaId")
    try:
        videos = await tmdb_client.fetch_videos(mediaType, mediaId)
    except Exception as e:
        logger.error(f"Error fetching trailer: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch trailer")

    found = tmdb_client.find_trailer(videos)
    if not found:
        raise HTTPException(status_code=404, detail="No trailer found")
    return {"key": found.get("key")}


@router.get("/movie/{movie_id}/reviews")
async def movie_reviews(movie_id: int):
    try:
        return await tmdb_client.fetch_reviews("movie", movie_id)
    except Exception as e:
        logger.error(f"Error fetching reviews for movie {movie_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch movie reviews")


@router.get("/tv/{tv_id}/reviews")
async def tv_reviews(tv_id: int):
    try:
        return await tmdb_client.fetch_reviews("tv", tv_id)
    except Exception as e:
        logger.error(f"Error fetching reviews for TV show {tv_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch TV show reviews")


@router.get("/movie/{movie_id}")
async def movie_details(movie_id: int):
    try:
        return await tmdb_client.fetch_movie_details(movie_id)
    except Exception as e:
        logger.error(f"Error fetching movie {movie_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch movie details")


@router.get("/tv/{tv_id}")
async def tv_details(tv_id: int):
    try:
        return await tmdb_client.fetch_tv_details(tv_id)
    except Exception as e:
        logger.error(f"Error fetching TV show {tv_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch TV show details")


@router.get("/tv/{tv_id}/season/{season_number}")
async def season_details(tv_id: int, season_number: int):
    try:
        return await tmdb_client.fetch_season_details(tv_id, season_number)
    except Exception as e:
        logger.error(f"Error fetching season {season_number} of {tv_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch season details")


@router.get("/tv/{tv_id}/season/{season_number}/episode/{episode_number}")
async def episode_details(tv_id: int, season_number: int, episode_number: int):
    try:
        return await tmdb_client.fetch_episode_details(tv_id, season_number, episode_number)
    except Exception as e:
        logger.error(f"Error fetching S{season_number}E{episode_number} of {tv_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch episode details")


@router.get("/person/{person_id}")
async def person_details(person_id: int):
    try:
        return await tmdb_client.fetch_person_details(person_id)
    except Exception as e:
        logger.error(f"Error fetching person {person_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch person details")

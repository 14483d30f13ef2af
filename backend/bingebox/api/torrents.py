"""
torrents.py

YTS torrent index routes. Cache-Control headers let a CDN absorb repeat lookups.
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from bingebox.services import yts_client

router = APIRouter()
logger = logging.getLogger(__name__)

LIST_CACHE_MAX_AGE = 60 * 60 * 24
MOVIE_CACHE_CONTROL = "public, s-maxage=43200, stale-while-revalidate=7200, max-age=7200"


@router.get("/yts/movie")
async def yts_movie(imdbId: Optional[str] = None):
    if not imdbId:
        raise HTTPException(status_code=400, detail="IMDB ID is required")

    movie = await yts_client.search_movie_by_imdb(imdbId)
    if not movie:
        return JSONResponse(
            {"message": "Movie not found on YTS"},
            status_code=404,
            headers={"Cache-Control": "no-store"},
        )
    return JSONResponse(
        {"movie": movie},
        headers={"Cache-Control": MOVIE_CACHE_CONTROL},
    )


@router.get("/yts")
async def yts_list(
    endpoint: str = "list_movies",
    query_term: str = "",
    page: str = "1",
    limit: str = "20",
    quality: str = "",
    minimum_rating: str = "",
    genre: str = "",
    sort_by: str = "date_added",
    order_by: str = "desc",
):
    if endpoint not in yts_client.LIST_ENDPOINTS:
        raise HTTPException(status_code=400, detail="Unsupported YTS endpoint")

    filters = {}
    if endpoint == "list_movies":
        filters = {
            "query_term": query_term,
            "page": page,
            "limit": limit,
            "quality": quality,
            "minimum_rating": minimum_rating,
            "genre": genre,
            "sort_by": sort_by,
            "order_by": order_by,
        }
    try:
        data = await yts_client.list_movies(endpoint, **filters)
    except Exception as e:
        logger.error(f"Error fetching from YTS API: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch data from YTS API")

    # Search results must stay fresh
    if query_term:
        headers = {"Cache-Control": "no-store, max-age=0"}
    else:
        headers = {
            "Cache-Control": f"public, max-age={LIST_CACHE_MAX_AGE}, s-maxage={LIST_CACHE_MAX_AGE * 2}",
            "Vary": "Origin, Accept-Encoding",
        }
    return JSONResponse(data, headers=headers)

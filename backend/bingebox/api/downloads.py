"""
downloads.py

Download-link lookup for a movie or a TV episode, cached for an hour per title.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from bingebox.services import download_client
from bingebox.services.ttl_cache import TTLCache, download_cache_key

router = APIRouter()
logger = logging.getLogger(__name__)


def get_download_cache(request: Request) -> TTLCache:
    return request.app.state.download_cache


@router.get("/download")
async def get_download_links(
    mediaType: Optional[str] = None,
    tmdbId: Optional[str] = None,
    season: Optional[str] = None,
    episode: Optional[str] = None,
    cache: TTLCache = Depends(get_download_cache),
):
    if not mediaType or not tmdbId:
        raise HTTPException(status_code=400, detail="Missing required parameters")
    if mediaType not in ("movie", "tv"):
        raise HTTPException(status_code=400, detail="Invalid media type")
    if mediaType == "tv" and (not season or not episode):
        raise HTTPException(status_code=400, detail="Season and episode are required for TV shows")

    key = download_cache_key(mediaType, tmdbId, season, episode)
    cached = cache.get(key)
    if cached is not None:
        return cached

    try:
        if mediaType == "tv":
            payload = await download_client.fetch_tv_download(tmdbId, season, episode)
        else:
            links = await download_client.fetch_movie_links(tmdbId)
            if not links:
                # Not cached: the next request asks the providers again
                return JSONResponse(
                    download_client.movie_payload(tmdbId, [], error="No download links found"),
                    status_code=502,
                )
            payload = download_client.movie_payload(tmdbId, links)
    except Exception as e:
        logger.error(f"Error fetching download links: {e}")
        return JSONResponse(
            {"error": "Failed to fetch download links", "details": str(e)},
            status_code=500,
        )

    cache.set(key, payload)
    return payload

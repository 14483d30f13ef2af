"""
sports.py

Live sports directory proxy (streamed.su). Upstream failures surface as 500.
"""
import logging
from typing import Any, Awaitable

from fastapi import APIRouter, HTTPException

from bingebox.services import streamed_client

router = APIRouter()
logger = logging.getLogger(__name__)


async def _proxy(fetch: Awaitable[Any], label: str):
    try:
        return await fetch
    except Exception as e:
        logger.error(f"Error fetching {label}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch {label}")


@router.get("/list")
async def list_sports():
    return await _proxy(streamed_client.fetch_sports(), "sports")


@router.get("/live")
async def live_matches():
    return await _proxy(streamed_client.fetch_live_matches(), "live matches")


@router.get("/popular")
async def popular_matches():
    return await _proxy(streamed_client.fetch_popular_matches(), "popular matches")


@router.get("/today")
async def today_matches():
    return await _proxy(streamed_client.fetch_today_matches(), "today's matches")


@router.get("/all")
async def all_matches():
    return await _proxy(streamed_client.fetch_all_matches(), "matches")


@router.get("/streams/{source}/{match_id}")
async def match_streams(source: str, match_id: str):
    return await _proxy(streamed_client.fetch_streams(source, match_id), "streams")


@router.get("/{sport}/popular")
async def sport_popular_matches(sport: str):
    return await _proxy(streamed_client.fetch_sport_popular_matches(sport), "popular sport matches")


@router.get("/{sport}")
async def sport_matches(sport: str):
    return await _proxy(streamed_client.fetch_sport_matches(sport), "sport matches")

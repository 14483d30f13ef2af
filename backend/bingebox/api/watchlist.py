"""
watchlist.py

Per-user watchlist status for movies and TV shows.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from bingebox.core.database import get_db
from bingebox.core.security import require_user
from bingebox.models import User, WATCHLIST_MEDIA_TYPES, WATCHLIST_STATUSES
from bingebox.schemas import WatchlistEntrySchema, WatchlistUpdate
from bingebox.services import watchlist_store

router = APIRouter()
logger = logging.getLogger(__name__)


def _check_media_type(media_type: str) -> None:
    if media_type not in WATCHLIST_MEDIA_TYPES:
        raise HTTPException(status_code=400, detail="Invalid media type")


@router.get("/watchlist")
def get_watchlist(list: Optional[str] = None, user: User = Depends(require_user), db: Session = Depends(get_db)):
    """All entries of one list, most recently changed first."""
    if not list or list not in WATCHLIST_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid or missing list type")
    try:
        rows = watchlist_store.list_by_status(db, user.id, list)
        return [WatchlistEntrySchema.model_validate(r).model_dump() for r in rows]
    except Exception as e:
        logger.error(f"Error fetching '{list}' watchlist for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch '{list}' watchlist")


@router.get("/watchlist/{media_type}/{media_id}")
def get_watchlist_status(media_type: str, media_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    _check_media_type(media_type)
    try:
        return {"status": watchlist_store.get_status(db, user.id, media_id, media_type)}
    except Exception as e:
        logger.error(f"Error fetching watchlist status: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch watchlist status")


@router.post("/watchlist/{media_type}/{media_id}")
async def set_watchlist_status(
    media_type: str,
    media_id: int,
    request: Request,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    # Body parsed by hand so an anonymous caller gets 401 even with a bad body
    try:
        body = await request.json()
        if not isinstance(body, dict):
            raise ValueError("Invalid JSON payload")
        update = WatchlistUpdate.model_validate(body)
    except (ValueError, ValidationError):
        raise HTTPException(status_code=400, detail="Invalid request body")

    _check_media_type(media_type)
    if not update.status or update.status not in WATCHLIST_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid watchlist status")

    try:
        row = watchlist_store.upsert(
            db,
            user.id,
            media_id,
            media_type,
            update.status,
            title=update.title,
            poster_path=update.poster_path,
            release_date=update.release_date,
        )
        return {
            "status": row.status,
            "title": row.title,
            "poster_path": row.poster_path,
            "release_date": row.release_date,
        }
    except Exception as e:
        logger.error(f"Error upserting watchlist item: {e}")
        raise HTTPException(status_code=500, detail="Failed to update watchlist")


@router.delete("/watchlist/{media_type}/{media_id}")
def remove_from_watchlist(media_type: str, media_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    _check_media_type(media_type)
    try:
        watchlist_store.delete(db, user.id, media_id, media_type)
        return {"message": "Removed from watchlist"}
    except Exception as e:
        logger.error(f"Error deleting watchlist item: {e}")
        raise HTTPException(status_code=500, detail="Failed to remove from watchlist")

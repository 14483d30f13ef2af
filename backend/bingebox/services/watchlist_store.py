"""
watchlist_store.py

CRUD over the ``watchlists`` table, keyed by (user, media id, media type).
One row per key: setting a new status overwrites the old one.
"""
import json
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bingebox.models import WatchlistItem
from bingebox.utils.timezone import utc_now

logger = logging.getLogger(__name__)


def _find(db: Session, user_id: int, media_id: int, media_type: str) -> Optional[WatchlistItem]:
    return db.query(WatchlistItem).filter(
        WatchlistItem.user_id == user_id,
        WatchlistItem.media_id == media_id,
        WatchlistItem.media_type == media_type,
    ).first()


def get_status(db: Session, user_id: int, media_id: int, media_type: str) -> Optional[str]:
    row = _find(db, user_id, media_id, media_type)
    return row.status if row else None


def list_by_status(db: Session, user_id: int, status: str) -> List[WatchlistItem]:
    return db.query(WatchlistItem).filter(
        WatchlistItem.user_id == user_id,
        WatchlistItem.status == status,
    ).order_by(WatchlistItem.updated_at.desc()).all()


def upsert(
    db: Session,
    user_id: int,
    media_id: int,
    media_type: str,
    status: str,
    title: Optional[str] = None,
    poster_path: Optional[str] = None,
    release_date: Optional[str] = None,
) -> WatchlistItem:
    """Insert or update the row for (user, media id, media type); last write wins."""
    release_date = release_date or None
    for attempt in range(2):
        try:
            row = _find(db, user_id, media_id, media_type)
            if row is None:
                row = WatchlistItem(user_id=user_id, media_id=media_id, media_type=media_type)
                db.add(row)
            row.status = status
            if title is not None:
                row.title = title
            if poster_path is not None:
                row.poster_path = poster_path
            if release_date is not None:
                row.release_date = release_date
            row.updated_at = utc_now()
            db.commit()
            db.refresh(row)
            return row
        except IntegrityError:
            # A concurrent insert won the unique key; the retry updates that row
            db.rollback()
            if attempt:
                raise
        except Exception as e:
            logger.error(f"Failed to upsert watchlist item {media_type}/{media_id} for user {user_id}: {e}")
            db.rollback()
            raise


def delete(db: Session, user_id: int, media_id: int, media_type: str) -> bool:
    row = _find(db, user_id, media_id, media_type)
    if not row:
        return False
    try:
        db.delete(row)
        db.commit()
        return True
    except Exception as e:
        logger.error(f"Failed to delete watchlist item {media_type}/{media_id} for user {user_id}: {e}")
        db.rollback()
        raise


def rows_missing_genres(db: Session) -> List[WatchlistItem]:
    return db.query(WatchlistItem).filter(WatchlistItem.genres.is_(None)).all()


def set_genres(db: Session, row_id: int, genres: List[str]) -> None:
    db.query(WatchlistItem).filter(WatchlistItem.id == row_id).update({"genres": json.dumps(genres)})
    db.commit()

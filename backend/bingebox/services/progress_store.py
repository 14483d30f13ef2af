"""
progress_store.py

Remote side of watch-progress sync: the ``watch_progress`` table, one row per
(user, media id, media type).
"""
import json
import logging
from typing import Any, Dict, Iterable, List

from sqlalchemy.orm import Session

from bingebox.models import WatchProgress
from bingebox.schemas import ProgressRowIn
from bingebox.utils.timezone import utc_now, ensure_utc

logger = logging.getLogger(__name__)

_ROW_FIELDS = (
    "title",
    "poster_path",
    "backdrop_path",
    "watched_seconds",
    "duration_seconds",
    "last_season_watched",
    "last_episode_watched",
)


def row_to_dict(row: WatchProgress) -> Dict[str, Any]:
    try:
        show_progress = json.loads(row.show_progress or "{}")
    except ValueError:
        logger.warning(f"Unparsable show_progress for progress row {row.id}")
        show_progress = {}
    return {
        "media_id": row.media_id,
        "media_type": row.media_type,
        "title": row.title or "",
        "poster_path": row.poster_path,
        "backdrop_path": row.backdrop_path,
        "watched_seconds": row.watched_seconds or 0,
        "duration_seconds": row.duration_seconds or 0,
        "last_season_watched": row.last_season_watched,
        "last_episode_watched": row.last_episode_watched,
        "show_progress": show_progress,
        "created_at": ensure_utc(row.created_at),
        "updated_at": ensure_utc(row.updated_at),
    }


def list_rows(db: Session, user_id: int) -> List[WatchProgress]:
    """All rows for the user, most recently updated first."""
    return db.query(WatchProgress).filter(
        WatchProgress.user_id == user_id
    ).order_by(WatchProgress.updated_at.desc(), WatchProgress.id.desc()).all()


def upsert_rows(db: Session, user_id: int, rows: Iterable[ProgressRowIn]) -> int:
    """Batched upsert in one transaction; returns the number of distinct keys written."""
    # Later entries for the same key win within one batch
    by_key: Dict[tuple, ProgressRowIn] = {}
    for row in rows:
        by_key[(row.media_id, row.media_type)] = row
    if not by_key:
        return 0

    try:
        media_ids = {media_id for media_id, _ in by_key}
        existing = {
            (r.media_id, r.media_type): r
            for r in db.query(WatchProgress).filter(
                WatchProgress.user_id == user_id,
                WatchProgress.media_id.in_(media_ids),
            ).all()
        }
        now = utc_now()
        for key, incoming in by_key.items():
            target = existing.get(key)
            if target is None:
                target = WatchProgress(user_id=user_id, media_id=incoming.media_id, media_type=incoming.media_type)
                db.add(target)
            for field in _ROW_FIELDS:
                setattr(target, field, getattr(incoming, field))
            target.show_progress = json.dumps(incoming.show_progress or {})
            target.updated_at = now
        db.commit()
        return len(by_key)
    except Exception as e:
        logger.error(f"Failed to upsert {len(by_key)} progress rows for user {user_id}: {e}")
        db.rollback()
        raise


def delete_row(db: Session, user_id: int, media_type: str, media_id: str) -> bool:
    try:
        deleted = db.query(WatchProgress).filter(
            WatchProgress.user_id == user_id,
            WatchProgress.media_id == media_id,
            WatchProgress.media_type == media_type,
        ).delete(synchronize_session=False)
        db.commit()
        return deleted > 0
    except Exception:
        db.rollback()
        raise


def delete_all(db: Session, user_id: int) -> int:
    try:
        deleted = db.query(WatchProgress).filter(WatchProgress.user_id == user_id).delete(synchronize_session=False)
        db.commit()
        return deleted
    except Exception:
        db.rollback()
        raise

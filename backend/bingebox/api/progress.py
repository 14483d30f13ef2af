"""
progress.py

Account-side watch progress: the rows the sync client uploads and downloads.
"""
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from bingebox.core.database import get_db
from bingebox.core.security import require_user
from bingebox.models import PROGRESS_MEDIA_TYPES, User
from bingebox.schemas import ProgressBatch, ProgressRowIn, ProgressRowOut, SaveProgressBeacon
from bingebox.services import progress_store
from bingebox.sync.formats import ledger_to_rows

router = APIRouter()
logger = logging.getLogger(__name__)


def _check_owner(rows: List[ProgressRowIn], user: User) -> None:
    for row in rows:
        if row.user_id is not None and row.user_id != user.id:
            raise HTTPException(status_code=400, detail="Progress rows must belong to the signed-in user")


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid request body")


def _save(db: Session, user: User, rows: List[ProgressRowIn]) -> int:
    try:
        return progress_store.upsert_rows(db, user.id, rows)
    except Exception as e:
        logger.error(f"Error saving progress for user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save progress")


@router.get("/progress")
def list_progress(user: User = Depends(require_user), db: Session = Depends(get_db)):
    try:
        rows = progress_store.list_rows(db, user.id)
        return {"items": [ProgressRowOut(**progress_store.row_to_dict(r)).model_dump() for r in rows]}
    except Exception as e:
        logger.error(f"Error loading progress for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load progress")


@router.post("/progress")
async def upsert_progress(request: Request, user: User = Depends(require_user), db: Session = Depends(get_db)):
    try:
        batch = ProgressBatch.model_validate(await _read_json(request))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid progress rows: {e.errors()[0].get('msg')}")
    _check_owner(batch.items, user)
    return {"success": True, "saved": _save(db, user, batch.items)}


@router.put("/progress/{media_type}/{media_id}")
async def upsert_progress_item(
    media_type: str,
    media_id: str,
    request: Request,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    body = await _read_json(request)
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid request body")
    try:
        row = ProgressRowIn.model_validate({**body, "media_type": media_type, "media_id": media_id})
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid progress row: {e.errors()[0].get('msg')}")
    _check_owner([row], user)
    _save(db, user, [row])
    return {"success": True, "media_id": row.media_id, "media_type": row.media_type}


@router.delete("/progress/{media_type}/{media_id}")
def delete_progress_item(media_type: str, media_id: str, user: User = Depends(require_user), db: Session = Depends(get_db)):
    if media_type not in PROGRESS_MEDIA_TYPES:
        raise HTTPException(status_code=400, detail="Invalid media type")
    try:
        deleted = progress_store.delete_row(db, user.id, media_type, media_id)
        return {"success": True, "deleted": deleted}
    except Exception as e:
        logger.error(f"Error deleting progress {media_type}/{media_id} for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete progress")


@router.delete("/progress")
def delete_all_progress(user: User = Depends(require_user), db: Session = Depends(get_db)):
    try:
        deleted = progress_store.delete_all(db, user.id)
        logger.info(f"Cleared {deleted} progress rows for user {user.id}")
        return {"success": True, "deleted": deleted}
    except Exception as e:
        logger.error(f"Error clearing progress for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to clear progress")


@router.post("/save-progress")
async def save_progress_beacon(request: Request, user: User = Depends(require_user), db: Session = Depends(get_db)):
    """Unload-time save: the whole local ledger in one request."""
    body = await _read_json(request)
    try:
        beacon = SaveProgressBeacon.model_validate(body)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid request")
    if beacon.action != "save_progress" or str(beacon.userId) != str(user.id):
        raise HTTPException(status_code=400, detail="Invalid request")

    ledger: Dict[str, Any] = beacon.data
    if not ledger:
        return {"success": True, "message": "No data to save"}
    try:
        rows = [ProgressRowIn.model_validate(r) for r in ledger_to_rows(ledger, user.id)]
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid progress data")
    return {"success": True, "saved": _save(db, user, rows)}

"""
Conversion between ledger entries (player format) and progress rows (table format).

Ledger entry::

    {"id": 550, "type": "movie", "title": "...", "poster_path": "...",
     "progress": {"watched": 120.0, "duration": 7200.0},
     "last_season_watched": "1", "last_episode_watched": "3",
     "show_progress": {"s1e3": {"season": "1", "episode": "3",
                                "progress": {...}, "last_updated": 1700000000000}},
     "last_updated": 1700000000000}
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from bingebox.utils.timezone import parse_iso, to_epoch_ms

Ledger = Dict[str, Dict[str, Any]]

LEDGER_STORAGE_KEY = "vidLinkProgress"


def episode_key(season: Any, episode: Any) -> str:
    return f"s{season}e{episode}"


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def item_to_row(item: Dict[str, Any], user_id: Any) -> Dict[str, Any]:
    progress = item.get("progress") or {}
    return {
        "user_id": user_id,
        "media_id": str(item.get("id")),
        "media_type": item.get("type"),
        "title": item.get("title") or "",
        "poster_path": item.get("poster_path") or None,
        "backdrop_path": item.get("backdrop_path") or None,
        "watched_seconds": progress.get("watched") or 0,
        "duration_seconds": progress.get("duration") or 0,
        "last_season_watched": _optional_str(item.get("last_season_watched")),
        "last_episode_watched": _optional_str(item.get("last_episode_watched")),
        "show_progress": item.get("show_progress") or {},
    }


def ledger_to_rows(ledger: Ledger, user_id: Any) -> List[Dict[str, Any]]:
    return [item_to_row(item, user_id) for item in ledger.values()]


def row_to_item(row: Dict[str, Any]) -> Dict[str, Any]:
    item: Dict[str, Any] = {
        "id": row["media_id"],
        "type": row["media_type"],
        "title": row.get("title") or "",
        "progress": {
            "watched": row.get("watched_seconds") or 0,
            "duration": row.get("duration_seconds") or 0,
        },
        "show_progress": row.get("show_progress") or {},
    }
    for field in ("poster_path", "backdrop_path", "last_season_watched", "last_episode_watched"):
        if row.get(field):
            item[field] = row[field]

    updated_at = row.get("updated_at")
    if isinstance(updated_at, str):
        updated_at = parse_iso(updated_at)
    if isinstance(updated_at, datetime):
        item["last_updated"] = to_epoch_ms(updated_at)
    return item


def rows_to_ledger(rows: Iterable[Dict[str, Any]]) -> Ledger:
    return {str(row["media_id"]): row_to_item(row) for row in rows}


def reconcile(local: Optional[Ledger], remote: Optional[Ledger]) -> Ledger:
    """Union of both views; a key present in both keeps the newer ``last_updated``.

    Ties go to the remote copy.
    """
    merged: Ledger = dict(remote or {})
    for media_id, item in (local or {}).items():
        other = merged.get(media_id)
        if other is None or (item.get("last_updated") or 0) > (other.get("last_updated") or 0):
            merged[media_id] = item
    return merged

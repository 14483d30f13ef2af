"""
Selection of ledger items for a "continue watching" row.
"""
from typing import Any, Dict, List, Optional, Tuple

from bingebox.sync.formats import Ledger, episode_key

MIN_WATCH_SECONDS = 60
MAX_PROGRESS_PERCENT = 95


def progress_percentage(progress: Optional[Dict[str, Any]]) -> Optional[float]:
    """Percentage watched, or None when the duration is unknown or zero."""
    if not progress:
        return None
    watched = progress.get("watched")
    duration = progress.get("duration")
    if not isinstance(watched, (int, float)) or not isinstance(duration, (int, float)) or duration <= 0:
        return None
    return watched / duration * 100


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _relevant_progress(item: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], bool]:
    """(progress to judge, whether the minimum-watch rule is met)."""
    if item.get("type") == "tv":
        season = item.get("last_season_watched")
        episode = item.get("last_episode_watched")
        show_progress = item.get("show_progress") or {}
        if not season or not episode:
            return None, False
        episode_data = show_progress.get(episode_key(season, episode)) or {}
        progress = episode_data.get("progress")
        if not progress:
            return None, False

        season_num, episode_num = _as_int(season), _as_int(episode)
        past_pilot = season_num is not None and episode_num is not None and (
            season_num > 1 or (season_num == 1 and episode_num > 1)
        )
        if past_pilot:
            return progress, True
        watched = progress.get("watched")
        return progress, isinstance(watched, (int, float)) and watched > MIN_WATCH_SECONDS

    progress = item.get("progress")
    watched = (progress or {}).get("watched")
    return progress, isinstance(watched, (int, float)) and watched > MIN_WATCH_SECONDS


def is_resumable(item: Dict[str, Any]) -> bool:
    progress, min_watch_met = _relevant_progress(item)
    percent = progress_percentage(progress)
    if percent is None:
        return False
    return min_watch_met and percent < MAX_PROGRESS_PERCENT


def continue_watching(ledger: Optional[Ledger]) -> List[Dict[str, Any]]:
    """Resumable items, most recently updated first."""
    if not ledger:
        return []
    items = [item for item in ledger.values() if item and is_resumable(item)]
    return sorted(items, key=lambda item: item.get("last_updated") or 0, reverse=True)

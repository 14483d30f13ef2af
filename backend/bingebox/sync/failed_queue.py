"""
Durable queue of saves that exhausted their retries, keyed by media id.

Entries survive restarts through local storage and are replayed only when the
owner asks (``WatchProgressSync.retry_failed_saves``).
"""
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bingebox.sync.storage import LocalStorage

logger = logging.getLogger(__name__)

FAILED_SAVES_STORAGE_KEY = "watchProgressFailedSaves"


class FailedSaveQueue:
    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def _read(self) -> Dict[str, Dict[str, Any]]:
        raw = self.storage.get_item(FAILED_SAVES_STORAGE_KEY)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
            return data if isinstance(data, dict) else {}
        except ValueError as e:
            logger.error(f"Error parsing failed saves from storage: {e}")
            return {}

    def _write(self, data: Dict[str, Dict[str, Any]]) -> None:
        if data:
            self.storage.set_item(FAILED_SAVES_STORAGE_KEY, json.dumps(data))
        else:
            self.storage.remove_item(FAILED_SAVES_STORAGE_KEY)

    def park(self, media_id: Any, item: Dict[str, Any], attempts: int) -> None:
        data = self._read()
        data[str(media_id)] = {"item": item, "attempts": attempts}
        self._write(data)

    def remove(self, media_id: Any) -> bool:
        data = self._read()
        if str(media_id) not in data:
            return False
        del data[str(media_id)]
        self._write(data)
        return True

    def remove_many(self, media_ids: Iterable[Any]) -> int:
        data = self._read()
        removed = [key for key in {str(m) for m in media_ids} if key in data]
        if not removed:
            return 0
        for key in removed:
            del data[key]
        self._write(data)
        return len(removed)

    def get(self, media_id: Any) -> Optional[Dict[str, Any]]:
        return self._read().get(str(media_id))

    def entries(self) -> List[Tuple[str, Dict[str, Any]]]:
        return list(self._read().items())

    def clear(self) -> None:
        self.storage.remove_item(FAILED_SAVES_STORAGE_KEY)

    def __len__(self) -> int:
        return len(self._read())

    def __contains__(self, media_id: Any) -> bool:
        return str(media_id) in self._read()

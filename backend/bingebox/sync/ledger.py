"""
Local progress ledger: the device-scoped map of media id -> playback progress.

The embedded player posts unsolicited ``MEDIA_DATA`` messages carrying a full
or partial ledger. Only messages from the trusted player origin are merged.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Union

from bingebox.core.config import settings
from bingebox.sync.formats import LEDGER_STORAGE_KEY, Ledger
from bingebox.sync.storage import LocalStorage

logger = logging.getLogger(__name__)

MEDIA_DATA = "MEDIA_DATA"


class ProgressLedger:
    def __init__(self, storage: LocalStorage, trusted_origin: Optional[str] = None):
        self.storage = storage
        self.trusted_origin = trusted_origin or settings.player_origin
        self._data: Ledger = {}
        self.load()

    def load(self) -> Ledger:
        raw = self.storage.get_item(LEDGER_STORAGE_KEY)
        self._data = {}
        if raw:
            try:
                parsed = json.loads(raw)
                if not isinstance(parsed, dict):
                    raise ValueError("ledger is not an object")
                self._data = parsed
            except ValueError as e:
                logger.error(f"Error parsing progress ledger from storage: {e}")
                self.storage.remove_item(LEDGER_STORAGE_KEY)
        return self._data

    @property
    def data(self) -> Ledger:
        return self._data

    def has_data(self) -> bool:
        """True when a ledger exists in storage (even an empty one)."""
        return self.storage.get_item(LEDGER_STORAGE_KEY) is not None

    def merge(self, update: Ledger) -> List[str]:
        """Shallow merge: each incoming entry replaces the entry with the same id."""
        changed = [str(media_id) for media_id in update]
        self._data = {**self._data, **{str(k): v for k, v in update.items()}}
        self.storage.set_item(LEDGER_STORAGE_KEY, json.dumps(self._data))
        return changed

    def apply_player_message(self, origin: str, message: Any) -> List[str]:
        """Merge a player message; returns changed ids, empty when the message is ignored."""
        if origin != self.trusted_origin:
            return []
        if not isinstance(message, dict) or message.get("type") != MEDIA_DATA:
            return []
        update = message.get("data")
        if not isinstance(update, dict) or not update:
            return []
        return self.merge(update)

    def get(self, media_id: Union[str, int]) -> Optional[Dict[str, Any]]:
        return self._data.get(str(media_id))

    def remove(self, media_id: Union[str, int]) -> bool:
        key = str(media_id)
        if key not in self._data:
            return False
        self._data = {k: v for k, v in self._data.items() if k != key}
        self.storage.set_item(LEDGER_STORAGE_KEY, json.dumps(self._data))
        return True

    def clear(self) -> None:
        self.storage.remove_item(LEDGER_STORAGE_KEY)
        self._data = {}

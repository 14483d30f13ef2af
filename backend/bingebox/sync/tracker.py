"""
Wires the local ledger to the account sync for one playback client.

Player messages update the ledger immediately; the changed items are saved to
the account after a quiet period (debounce) so a stream of progress ticks
turns into one save per item.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from bingebox.sync.formats import Ledger, reconcile
from bingebox.sync.progress_sync import WatchProgressSync

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 2.0


class WatchProgressTracker:
    def __init__(self, sync: WatchProgressSync, debounce_seconds: float = DEBOUNCE_SECONDS):
        self.sync = sync
        self.ledger = sync.ledger
        self.debounce_seconds = debounce_seconds
        self.progress: Ledger = {}
        self._dirty: Set[str] = set()
        self._debounce_task: Optional[asyncio.Task] = None

    @property
    def dirty(self) -> Set[str]:
        return set(self._dirty)

    async def load(self) -> Ledger:
        local = self.ledger.load()
        if self.sync.authenticated:
            remote = await self.sync.load_account_data()
            if remote is not None:
                self.progress = reconcile(local, remote)
                return self.progress
        self.progress = dict(local)
        return self.progress

    def handle_player_message(self, origin: str, message: Any) -> List[str]:
        """Must be called from the running event loop when a user is signed in."""
        changed = self.ledger.apply_player_message(origin, message)
        for media_id in changed:
            self.progress[media_id] = self.ledger.get(media_id)
            self._dirty.add(media_id)
        if changed and self.sync.authenticated:
            self._schedule_flush()
        return changed

    def _schedule_flush(self) -> None:
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounced_flush())

    async def _debounced_flush(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        # Past this point a newer message schedules a new timer instead of cancelling the save
        self._debounce_task = None
        await self.flush()

    async def flush(self) -> Dict[str, bool]:
        if not self.sync.authenticated:
            return {}
        await self.sync.retry_failed_saves(self.progress)

        snapshot = {media_id: self.progress[media_id] for media_id in self._dirty if media_id in self.progress}
        ids = list(snapshot)
        results = await asyncio.gather(*(self.sync.save_item_to_account(media_id, snapshot[media_id]) for media_id in ids))

        outcome = dict(zip(ids, results))
        for media_id, ok in outcome.items():
            # An update that arrived during the save keeps the item dirty
            if ok and self.progress.get(media_id) is snapshot[media_id]:
                self._dirty.discard(media_id)
        return outcome

    async def close(self) -> bool:
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

        pending = {media_id: self.progress[media_id] for media_id in self._dirty if media_id in self.progress}
        if not pending:
            return True
        ok = await self.sync.save_to_account(pending)
        if ok:
            self._dirty.difference_update(pending)
        return ok

    async def remove_progress(self, media_id: Any) -> bool:
        key = str(media_id)
        item = self.progress.pop(key, None) or self.ledger.get(key)
        self.ledger.remove(key)
        self._dirty.discard(key)
        self.sync.queue.remove(key)
        if item is None or not self.sync.authenticated:
            return item is not None
        return await self.sync.delete_item(item.get("type"), key)

    async def clear_all_progress(self) -> bool:
        self.ledger.clear()
        self.progress = {}
        self._dirty.clear()
        if self.sync.authenticated:
            return await self.sync.clear_account_data()
        return True

    async def sign_out(self) -> None:
        """Save the local ledger to the account, then drop the identity. The ledger is kept."""
        if self.sync.authenticated and self.ledger.data:
            if await self.sync.save_to_account(self.ledger.data):
                logger.info("Saved local progress to account before sign-out")
        await self.sync.set_user(None)

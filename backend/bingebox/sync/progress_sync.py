"""
Remote side of the watch-progress sync, as seen from a client device.

Bulk upload moves the local ledger into the account (then clears it), bulk
download reads the account view, and single-item saves retry three times
before parking the item in the durable failed-saves queue.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from bingebox.sync.failed_queue import FailedSaveQueue
from bingebox.sync.formats import Ledger, item_to_row, ledger_to_rows, rows_to_ledger
from bingebox.sync.ledger import ProgressLedger
from bingebox.sync.remote import ProgressApiClient
from bingebox.sync.retry import MAX_ATTEMPTS, PendingSave, is_permanent_failure

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class WatchProgressSync:
    def __init__(
        self,
        ledger: ProgressLedger,
        queue: FailedSaveQueue,
        api: Optional[ProgressApiClient] = None,
        user_id: Optional[Any] = None,
        sleep: Sleep = asyncio.sleep,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self.ledger = ledger
        self.queue = queue
        self.api = api
        self.user_id = user_id
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._in_flight = False

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None and self.api is not None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def set_user(self, user_id: Optional[Any], api: Optional[ProgressApiClient] = None) -> bool:
        """Switch identity; a newly available user triggers one bulk upload.

        Returns True when the upload ran and succeeded.
        """
        previous = self.user_id
        self.user_id = user_id
        if user_id is None:
            self.api = None
            return False
        if api is not None:
            self.api = api

        if user_id != previous and self.ledger.has_data():
            logger.info(f"User {user_id} signed in with local progress, uploading")
            return await self.sync_local_to_account()
        return False

    async def sync_local_to_account(self) -> bool:
        """Upload the whole local ledger; clears it only after the upsert succeeded."""
        if not self.authenticated or self._in_flight:
            return False
        local = self.ledger.data
        if not local:
            return False

        self._in_flight = True
        try:
            rows = ledger_to_rows(local, self.user_id)
            await self.api.upsert_many(rows)
            self.ledger.clear()
            self.queue.remove_many(local)
            logger.info(f"Synced {len(rows)} local progress items to account {self.user_id}")
            return True
        except Exception as e:
            # Ledger stays untouched; the next sign-in retries
            logger.error(f"Error syncing local progress to account: {e}")
            return False
        finally:
            self._in_flight = False

    async def load_account_data(self) -> Optional[Ledger]:
        if not self.authenticated:
            return None
        try:
            rows = await self.api.fetch_all()
            return rows_to_ledger(rows)
        except Exception as e:
            logger.error(f"Error loading account progress: {e}")
            return None

    async def save_item_to_account(self, media_id: Any, item: Dict[str, Any]) -> bool:
        if not self.authenticated:
            return False

        pending = PendingSave(media_id, item, max_attempts=self.max_attempts)
        row = item_to_row(item, self.user_id)
        while True:
            pending.start()
            try:
                await self.api.upsert_one(row)
                pending.succeed()
                self.queue.remove(media_id)
                return True
            except Exception as e:
                if is_permanent_failure(e):
                    # Permanent rejection: no retry, no queue entry
                    pending.reject(e)
                    self.queue.remove(media_id)
                    logger.error(f"Save for {media_id} rejected: {e}")
                    return False
                delay = pending.fail(e)
                logger.warning(
                    f"Save attempt {pending.attempts}/{pending.max_attempts} for {media_id} failed: {e}"
                )
                await self._sleep(delay)
                if pending.exhausted:
                    pending.park()
                    self.queue.park(media_id, item, pending.attempts)
                    logger.error(f"Giving up on saving {media_id} after {pending.attempts} attempts, queued for retry")
                    return False

    async def retry_failed_saves(self, current: Optional[Ledger] = None) -> int:
        """Replay every parked item with a fresh retry cycle; returns how many succeeded.

        An entry older than the copy in ``current`` (or the local ledger) is
        dropped instead of replayed.
        """
        if not self.authenticated:
            return 0
        saved = 0
        for media_id, entry in self.queue.entries():
            item = entry.get("item")
            if not item:
                self.queue.remove(media_id)
                continue
            latest = (current or {}).get(media_id) or self.ledger.get(media_id)
            if latest is not None and (latest.get("last_updated") or 0) > (item.get("last_updated") or 0):
                logger.info(f"Dropping stale failed save for {media_id}, newer progress exists")
                self.queue.remove(media_id)
                continue
            if await self.save_item_to_account(media_id, item):
                saved += 1
        return saved

    async def save_to_account(self, items: Ledger) -> bool:
        """Batched save without retry, for teardown paths."""
        if not self.authenticated or self._in_flight or not items:
            return False
        try:
            await self.api.upsert_many(ledger_to_rows(items, self.user_id))
            self.queue.remove_many(items)
            return True
        except Exception as e:
            logger.error(f"Error saving progress to account: {e}")
            return False

    async def delete_item(self, media_type: str, media_id: Any) -> bool:
        if not self.authenticated:
            return False
        try:
            await self.api.delete_one(media_type, media_id)
            return True
        except Exception as e:
            logger.error(f"Error deleting progress for {media_type}/{media_id}: {e}")
            return False

    async def clear_account_data(self) -> bool:
        if not self.authenticated:
            return False
        try:
            await self.api.delete_all()
            return True
        except Exception as e:
            logger.error(f"Error clearing account progress: {e}")
            return False

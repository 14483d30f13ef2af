import unittest

import httpx
from fastapi.testclient import TestClient

from bingebox.main import app
from bingebox.sync.failed_queue import FailedSaveQueue
from bingebox.sync.ledger import ProgressLedger
from bingebox.sync.progress_sync import WatchProgressSync
from bingebox.sync.remote import ProgressApiClient, RemoteSyncError
from bingebox.sync.storage import MemoryStorage
from support import RecordingSleep, movie_item, reset_database, sign_up, tv_item


def row(media_id, media_type="movie", **fields):
    return {"media_id": media_id, "media_type": media_type, "title": f"Title {media_id}", **fields}


class TestProgressRoutes(unittest.TestCase):
    def setUp(self):
        reset_database()
        self.client = TestClient(app)
        self.client.__enter__()
        self.headers = sign_up(self.client)
        self.user_id = self.client.get("/api/auth/session", headers=self.headers).json()["session"]["user"]["id"]

    def tearDown(self):
        self.client.__exit__(None, None, None)

    def test_requires_session(self):
        self.client.cookies.clear()
        self.assertEqual(self.client.get("/api/progress").status_code, 401)
        self.assertEqual(self.client.post("/api/progress", json={"items": []}).status_code, 401)

    def test_batch_upsert_is_keyed_by_media(self):
        resp = self.client.post(
            "/api/progress",
            json={"items": [row("1", watched_seconds=10, duration_seconds=100), row(2, "tv", last_season_watched=1)]},
            headers=self.headers,
        )
        self.assertEqual(resp.json(), {"success": True, "saved": 2})

        self.client.post("/api/progress", json={"items": [row("1", watched_seconds=50, duration_seconds=100)]}, headers=self.headers)

        items = self.client.get("/api/progress", headers=self.headers).json()["items"]
        self.assertEqual(len(items), 2)
        # Most recently updated first
        self.assertEqual(items[0]["media_id"], "1")
        self.assertEqual(items[0]["watched_seconds"], 50)
        self.assertEqual(items[1]["last_season_watched"], "1")

    def test_rows_for_other_user_rejected(self):
        resp = self.client.post("/api/progress", json={"items": [row("1", user_id=self.user_id + 1)]}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.client.get("/api/progress", headers=self.headers).json()["items"], [])

    def test_invalid_rows_rejected(self):
        resp = self.client.post("/api/progress", json={"items": [row("1", "podcast")]}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertIn("error", resp.json())

    def test_single_row_put_and_delete(self):
        resp = self.client.put("/api/progress/tv/77", json={"title": "Show", "show_progress": {"s1e1": {}}}, headers=self.headers)
        self.assertEqual(resp.status_code, 200)

        items = self.client.get("/api/progress", headers=self.headers).json()["items"]
        self.assertEqual(items[0]["show_progress"], {"s1e1": {}})

        self.assertEqual(self.client.delete("/api/progress/tv/77", headers=self.headers).json()["deleted"], True)
        self.assertEqual(self.client.get("/api/progress", headers=self.headers).json()["items"], [])

    def test_delete_all(self):
        self.client.post("/api/progress", json={"items": [row("1"), row("2")]}, headers=self.headers)
        self.assertEqual(self.client.delete("/api/progress", headers=self.headers).json()["deleted"], 2)

    def test_save_progress_beacon(self):
        ledger = {"5": movie_item(5), "6": tv_item(6, 2, 3)}
        resp = self.client.post(
            "/api/save-progress",
            json={"action": "save_progress", "data": ledger, "userId": self.user_id},
            headers=self.headers,
        )
        self.assertEqual(resp.json(), {"success": True, "saved": 2})

        items = {i["media_id"]: i for i in self.client.get("/api/progress", headers=self.headers).json()["items"]}
        self.assertEqual(items["6"]["last_episode_watched"], "3")
        self.assertEqual(items["5"]["duration_seconds"], 7200)

    def test_save_progress_beacon_rejects_mismatch(self):
        payload = {"action": "save_progress", "data": {"5": movie_item(5)}, "userId": self.user_id + 1}
        self.assertEqual(self.client.post("/api/save-progress", json=payload, headers=self.headers).status_code, 400)

        payload = {"action": "delete", "data": {}, "userId": self.user_id}
        self.assertEqual(self.client.post("/api/save-progress", json=payload, headers=self.headers).status_code, 400)


class TestSyncAgainstService(unittest.IsolatedAsyncioTestCase):
    """The sync client talking to the real routes over an in-process transport."""

    def setUp(self):
        reset_database()
        with TestClient(app) as client:
            self.token = sign_up(client)["Authorization"].split(" ", 1)[1]
            self.user_id = client.get("/api/auth/session", headers={"Authorization": f"Bearer {self.token}"}).json()["session"]["user"]["id"]

    def make_api(self, token=None):
        return ProgressApiClient("http://testserver", token or self.token, transport=httpx.ASGITransport(app=app))

    async def test_upload_then_download_round(self):
        storage = MemoryStorage()
        ledger = ProgressLedger(storage)
        sync = WatchProgressSync(ledger, FailedSaveQueue(storage), sleep=RecordingSleep())
        ledger.merge({"1": movie_item(1), "2": tv_item(2, 1, 5)})

        self.assertTrue(await sync.set_user(self.user_id, self.make_api()))
        self.assertEqual(ledger.data, {})

        account = await sync.load_account_data()
        self.assertEqual(set(account), {"1", "2"})
        self.assertEqual(account["2"]["last_episode_watched"], "5")
        self.assertIn("last_updated", account["1"])

    async def test_rejected_row_is_not_retried(self):
        storage = MemoryStorage()
        queue = FailedSaveQueue(storage)
        sleep = RecordingSleep()
        sync = WatchProgressSync(ProgressLedger(storage), queue, api=self.make_api(), user_id=self.user_id, sleep=sleep)

        self.assertFalse(await sync.save_item_to_account("3", {**movie_item(3), "type": "book"}))

        self.assertEqual(sleep.delays, [])
        self.assertEqual(len(queue), 0)

    async def test_bad_token_raises_remote_error(self):
        with self.assertRaises(RemoteSyncError) as ctx:
            await self.make_api("not-a-token").fetch_all()
        self.assertEqual(ctx.exception.status_code, 401)


if __name__ == "__main__":
    unittest.main()

import unittest

from fastapi.testclient import TestClient

from bingebox.core.database import SessionLocal
from bingebox.main import app
from bingebox.models import User, WatchlistItem
from bingebox.services import watchlist_store
from support import reset_database, sign_up


class TestWatchlistStore(unittest.TestCase):
    def setUp(self):
        reset_database()
        self.db = SessionLocal()
        self.user = User(email="store@example.com", password_hash="x")
        self.db.add(self.user)
        self.db.commit()

    def tearDown(self):
        self.db.close()

    def test_second_status_overwrites_first(self):
        watchlist_store.upsert(self.db, self.user.id, 550, "movie", "watching", title="Fight Club")
        watchlist_store.upsert(self.db, self.user.id, 550, "movie", "dropped")

        rows = self.db.query(WatchlistItem).filter(WatchlistItem.user_id == self.user.id).all()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].status, "dropped")
        self.assertEqual(rows[0].title, "Fight Club")
        self.assertEqual(watchlist_store.get_status(self.db, self.user.id, 550, "movie"), "dropped")

    def test_same_id_different_type_are_separate(self):
        watchlist_store.upsert(self.db, self.user.id, 1, "movie", "watching")
        watchlist_store.upsert(self.db, self.user.id, 1, "tv", "should-watch")
        self.assertEqual(watchlist_store.get_status(self.db, self.user.id, 1, "movie"), "watching")
        self.assertEqual(watchlist_store.get_status(self.db, self.user.id, 1, "tv"), "should-watch")

    def test_empty_release_date_stored_as_null(self):
        row = watchlist_store.upsert(self.db, self.user.id, 2, "movie", "watching", release_date="")
        self.assertIsNone(row.release_date)

    def test_delete(self):
        watchlist_store.upsert(self.db, self.user.id, 3, "tv", "watching")
        self.assertTrue(watchlist_store.delete(self.db, self.user.id, 3, "tv"))
        self.assertFalse(watchlist_store.delete(self.db, self.user.id, 3, "tv"))
        self.assertIsNone(watchlist_store.get_status(self.db, self.user.id, 3, "tv"))


class TestWatchlistRoutes(unittest.TestCase):
    def setUp(self):
        reset_database()
        self.client = TestClient(app)
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)

    def test_end_to_end_scenario(self):
        resp = self.client.get("/api/watchlist/movie/550")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Unauthorized"})

        headers = sign_up(self.client)

        resp = self.client.get("/api/watchlist/movie/550", headers=headers)
        self.assertEqual(resp.json(), {"status": None})

        body = {"status": "watching", "title": "Fight Club", "poster_path": "/p.jpg", "release_date": "1999-10-15"}
        resp = self.client.post("/api/watchlist/movie/550", json=body, headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), body)

        resp = self.client.delete("/api/watchlist/movie/550", headers=headers)
        self.assertEqual(resp.json(), {"message": "Removed from watchlist"})

        resp = self.client.get("/api/watchlist/movie/550", headers=headers)
        self.assertEqual(resp.json(), {"status": None})

    def test_unauthenticated_write_has_no_side_effect(self):
        resp = self.client.post("/api/watchlist/movie/1", content="not json")
        self.assertEqual(resp.status_code, 401)
        db = SessionLocal()
        try:
            self.assertEqual(db.query(WatchlistItem).count(), 0)
        finally:
            db.close()

    def test_validation_errors(self):
        headers = sign_up(self.client)
        resp = self.client.post("/api/watchlist/movie/1", content="not json", headers=headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Invalid request body"})

        resp = self.client.post("/api/watchlist/movie/1", json={"status": "finished"}, headers=headers)
        self.assertEqual(resp.json(), {"error": "Invalid watchlist status"})

        resp = self.client.post("/api/watchlist/anime/1", json={"status": "watching"}, headers=headers)
        self.assertEqual(resp.json(), {"error": "Invalid media type"})

        resp = self.client.get("/api/watchlist?list=favorites", headers=headers)
        self.assertEqual(resp.status_code, 400)

    def test_list_by_status(self):
        headers = sign_up(self.client)
        self.client.post("/api/watchlist/movie/1", json={"status": "watching", "title": "A"}, headers=headers)
        self.client.post("/api/watchlist/tv/2", json={"status": "watching", "title": "B"}, headers=headers)
        self.client.post("/api/watchlist/movie/3", json={"status": "dropped", "title": "C"}, headers=headers)

        resp = self.client.get("/api/watchlist?list=watching", headers=headers)

        self.assertEqual(resp.status_code, 200)
        self.assertEqual([row["title"] for row in resp.json()], ["B", "A"])

    def test_lists_are_per_user(self):
        alice = sign_up(self.client, "alice@example.com")
        bob = sign_up(self.client, "bob@example.com")
        self.client.post("/api/watchlist/movie/1", json={"status": "watching"}, headers=alice)
        self.assertEqual(self.client.get("/api/watchlist/movie/1", headers=bob).json(), {"status": None})


if __name__ == "__main__":
    unittest.main()

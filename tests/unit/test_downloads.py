import unittest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from bingebox.main import app
from bingebox.services import download_client
from bingebox.services.ttl_cache import TTLCache, download_cache_key
from support import json_response, mock_client_factory

LINK = {"resolution": "1080p", "url": "https://cdn.example/a.mkv", "text": "Download", "source": "vidzee-v4"}


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestTTLCache(unittest.TestCase):
    def test_keys(self):
        self.assertEqual(download_cache_key("movie", "123"), "movie:123")
        self.assertEqual(download_cache_key("tv", "9", "1", "2"), "tv:9:1:2")

    def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=3600, clock=clock)
        cache.set("movie:1", {"a": 1})

        clock.now += 3599
        self.assertEqual(cache.get("movie:1"), {"a": 1})

        clock.now += 1
        self.assertIsNone(cache.get("movie:1"))
        self.assertNotIn("movie:1", cache)

    def test_set_overwrites(self):
        cache = TTLCache()
        cache.set("k", 1)
        cache.set("k", 2)
        self.assertEqual(cache.get("k"), 2)
        cache.clear()
        self.assertEqual(len(cache), 0)


class TestDownloadRoute(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)
        self.client.__enter__()
        self.clock = FakeClock()
        app.state.download_cache = TTLCache(ttl_seconds=3600, clock=self.clock)

    def tearDown(self):
        self.client.__exit__(None, None, None)

    def test_movie_lookup_cached_for_an_hour(self):
        fetch = AsyncMock(return_value=[LINK])
        with patch.object(download_client, "fetch_movie_links", fetch):
            first = self.client.get("/api/download?mediaType=movie&tmdbId=123")
            second = self.client.get("/api/download?mediaType=movie&tmdbId=123")
            self.assertEqual(fetch.await_count, 1)
            self.assertEqual(first.json(), second.json())
            self.assertEqual(first.json()["status"], "success")

            self.clock.now += 3600
            fetch.return_value = [{**LINK, "url": "https://cdn.example/b.mkv"}]
            third = self.client.get("/api/download?mediaType=movie&tmdbId=123")

        self.assertEqual(fetch.await_count, 2)
        self.assertEqual(third.json()["downloadLinks"][0]["url"], "https://cdn.example/b.mkv")
        self.assertEqual(app.state.download_cache.get("movie:123")["downloadLinks"][0]["url"], "https://cdn.example/b.mkv")

    def test_no_links_is_502_and_not_cached(self):
        with patch.object(download_client, "fetch_movie_links", AsyncMock(return_value=[])):
            resp = self.client.get("/api/download?mediaType=movie&tmdbId=5")
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json(), {"status": "error", "tmdbId": "5", "downloadLinks": [], "error": "No download links found"})
        self.assertNotIn("movie:5", app.state.download_cache)

    def test_parameter_validation(self):
        self.assertEqual(self.client.get("/api/download?mediaType=movie").status_code, 400)
        self.assertEqual(self.client.get("/api/download?mediaType=tv&tmdbId=1&season=1").status_code, 400)
        self.assertEqual(self.client.get("/api/download?mediaType=book&tmdbId=1").status_code, 400)

    def test_tv_fills_missing_season_and_episode(self):
        def handler(request):
            self.assertTrue(request.url.path.endswith("/download/tv/v1/1399/2/3"))
            return json_response({"status": "success", "season": "", "episode": "", "links": []})

        with patch("bingebox.services.http_client.make_client", mock_client_factory(handler)):
            resp = self.client.get("/api/download?mediaType=tv&tmdbId=1399&season=2&episode=3")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual((resp.json()["season"], resp.json()["episode"]), ("2", "3"))
        self.assertIn("tv:1399:2:3", app.state.download_cache)

    def test_tv_upstream_error_is_500(self):
        with patch("bingebox.services.http_client.make_client", mock_client_factory(lambda r: json_response({}, 503))):
            resp = self.client.get("/api/download?mediaType=tv&tmdbId=1&season=1&episode=1")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["error"], "Failed to fetch download links")


class TestMovieSources(unittest.IsolatedAsyncioTestCase):
    async def test_sources_merged_filtered_and_deduped(self):
        def handler(request):
            path = request.url.path
            if "/v4/" in path:
                return json_response({"status": "success", "download_links": [
                    {"resolution": "1080p", "url": "https://cdn.example/a.mkv", "text": "A"},
                    {"resolution": "720p", "url": "ftp://cdn.example/b.mkv", "text": "B"},
                ]})
            if "/v3/" in path:
                return json_response({"status": "success", "download_links": [
                    {"resolution": "1080p", "url": "https://cdn.example/a.mkv", "text": "A again"},
                ]})
            return json_response({"downloadLink": "Download link not available"}, 200)

        with patch("bingebox.services.http_client.make_client", mock_client_factory(handler)):
            links = await download_client.fetch_movie_links("550")

        self.assertEqual([link["url"] for link in links], ["https://cdn.example/a.mkv"])
        self.assertEqual(links[0]["source"], "vidzee-v4")

    async def test_failing_source_contributes_nothing(self):
        def handler(request):
            if "/v1/" in request.url.path:
                return json_response({"downloadLink": "https://page.example/dl"})
            return json_response({"error": "boom"}, 500)

        with patch("bingebox.services.http_client.make_client", mock_client_factory(handler)):
            links = await download_client.fetch_movie_links("550")

        self.assertEqual(links, [{"resolution": "page", "url": "https://page.example/dl", "text": "Open download page (v1)", "source": "vidzee-v1"}])


if __name__ == "__main__":
    unittest.main()

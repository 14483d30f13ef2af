import json
import unittest
from unittest.mock import patch

import httpx

from bingebox.core.config import settings
from bingebox.services import streamed_client, tmdb_client, yts_client
from bingebox.services.response_cache import CACHE_PREFIX
from support import FakeRedis, RecordingSleep, json_response, mock_client_factory


class UpstreamTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.redis = FakeRedis()
        self.calls = []
        redis_patch = patch("bingebox.services.response_cache.get_redis", return_value=self.redis)
        redis_patch.start()
        self.addCleanup(redis_patch.stop)

    def serve(self, handler):
        client_patch = patch("bingebox.services.http_client.make_client", mock_client_factory(handler, self.calls))
        client_patch.start()
        self.addCleanup(client_patch.stop)


class TestTmdbClient(UpstreamTestCase):
    async def test_trending_drops_people_and_caches(self):
        self.serve(lambda r: json_response({"page": 1, "results": [
            {"id": 1, "media_type": "movie"},
            {"id": 2, "media_type": "person"},
            {"id": 3, "media_type": "tv"},
        ]}))

        first = await tmdb_client.fetch_trending()
        second = await tmdb_client.fetch_trending()

        self.assertEqual([r["id"] for r in first["results"]], [1, 3])
        self.assertEqual(first, second)
        self.assertEqual(len(self.calls), 1)
        self.assertEqual(self.calls[0].url.params["api_key"], settings.tmdb_api_key)
        # The key is never part of the cache key
        self.assertTrue(all("api_key" not in key for key in self.redis.store))

    async def test_genres_use_week_long_window(self):
        self.serve(lambda r: json_response({"genres": [{"id": 28, "name": "Action"}]}))
        await tmdb_client.fetch_genres("movie")
        self.assertEqual(list(self.redis.ttls.values()), [604800])

    async def test_failure_returns_empty_page(self):
        self.serve(lambda r: json_response({"status_message": "nope"}, 401))
        self.assertEqual(await tmdb_client.fetch_popular_movies(), {"results": []})
        self.assertEqual(self.redis.store, {})

    async def test_missing_key_returns_empty_page(self):
        self.serve(lambda r: json_response({"results": [{"id": 1}]}))
        with patch.object(settings, "tmdb_api_key", ""):
            self.assertEqual(await tmdb_client.search_multi("dune"), {"results": []})
        self.assertEqual(self.calls, [])

    async def test_discover_forwards_known_filters_only(self):
        self.serve(lambda r: json_response({"results": []}))
        await tmdb_client.discover("tv", {"with_genres": "18", "page": "2", "evil": "1", "year": ""})
        params = self.calls[0].url.params
        self.assertTrue(self.calls[0].url.path.endswith("/discover/tv"))
        self.assertEqual(params["with_genres"], "18")
        self.assertNotIn("evil", params)
        self.assertNotIn("year", params)

    def test_find_trailer(self):
        videos = {"results": [
            {"site": "Vimeo", "type": "Trailer", "key": "v"},
            {"site": "YouTube", "type": "Featurette", "key": "f"},
            {"site": "YouTube", "type": "Teaser", "key": "t"},
        ]}
        self.assertEqual(tmdb_client.find_trailer(videos)["key"], "t")
        self.assertIsNone(tmdb_client.find_trailer({"results": []}))


class TestStreamedClient(UpstreamTestCase):
    async def test_live_matches_short_window(self):
        self.serve(lambda r: json_response([{"id": "m1"}]))
        self.assertEqual(await streamed_client.fetch_live_matches(), [{"id": "m1"}])
        self.assertEqual(self.redis.ttls[f"{CACHE_PREFIX}streamed:/matches/live"], 60)
        self.assertEqual(self.calls[0].headers["User-Agent"], "BingeBox/1.0")

    async def test_failure_propagates_and_is_not_cached(self):
        self.serve(lambda r: json_response({}, 502))
        with self.assertRaises(httpx.HTTPStatusError):
            await streamed_client.fetch_sport_matches("football")
        self.assertEqual(self.redis.store, {})

    async def test_endpoint_paths(self):
        self.serve(lambda r: json_response([]))
        await streamed_client.fetch_popular_matches()
        await streamed_client.fetch_today_matches()
        await streamed_client.fetch_all_matches()
        await streamed_client.fetch_sport_popular_matches("tennis")
        paths = [c.url.path.split("/api", 1)[1] for c in self.calls]
        self.assertEqual(paths, ["/matches/all/popular", "/matches/all-today", "/matches/all", "/matches/tennis/popular"])
        self.assertEqual(self.redis.ttls[f"{CACHE_PREFIX}streamed:/matches/all-today"], 300)


class TestYtsClient(UpstreamTestCase):
    async def test_lookup_retries_bad_gateway(self):
        responses = [json_response({}, 502), json_response({}, 502), json_response(
            {"status": "ok", "data": {"movies": [{"imdb_code": "tt0137523", "title": "Fight Club"}]}}
        )]
        self.serve(lambda r: responses.pop(0))
        sleep = RecordingSleep()

        movie = await yts_client.search_movie_by_imdb("tt0137523", sleep=sleep)

        self.assertEqual(movie["title"], "Fight Club")
        self.assertEqual(sleep.delays, [1, 2])

    async def test_lookup_rejects_fuzzy_match(self):
        self.serve(lambda r: json_response(
            {"status": "ok", "data": {"movies": [{"imdb_code": "tt9999999", "title": "Fight Club 2"}]}}
        ))
        self.assertIsNone(await yts_client.search_movie_by_imdb("tt0137523", sleep=RecordingSleep()))

    async def test_lookup_gives_up_after_retries(self):
        self.serve(lambda r: json_response({}, 503))
        sleep = RecordingSleep()
        self.assertIsNone(await yts_client.search_movie_by_imdb("tt1", sleep=sleep))
        self.assertEqual(len(self.calls), 3)

    async def test_list_movies_skips_empty_filters(self):
        self.serve(lambda r: json_response({"status": "ok", "data": {"movies": []}}))
        await yts_client.list_movies("list_movies", query_term="", page="2", genre=None)
        self.assertEqual(dict(self.calls[0].url.params), {"page": "2"})


class TestResponseCache(UpstreamTestCase):
    async def test_cache_hit_skips_fetch(self):
        self.redis.store[f"{CACHE_PREFIX}streamed:/sports"] = json.dumps([{"id": "football"}])
        self.serve(lambda r: json_response([]))
        self.assertEqual(await streamed_client.fetch_sports(), [{"id": "football"}])
        self.assertEqual(self.calls, [])


if __name__ == "__main__":
    unittest.main()

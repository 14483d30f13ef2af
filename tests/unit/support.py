"""Shared doubles for the unit tests."""
import json
from typing import Any, Callable, Dict, List, Optional

import httpx

from bingebox.core.config import settings
from bingebox.core.database import engine
from bingebox.models import Base
from bingebox.sync.remote import RemoteSyncError


class FakeProgressApi:
    """In-memory stand-in for ProgressApiClient with scripted failures."""

    def __init__(self, fail_times: int = 0, fail_bulk: bool = False, fail_status: int = 503):
        self.fail_times = fail_times
        self.fail_status = fail_status
        self.fail_bulk = fail_bulk
        self.rows = {}
        self.upsert_one_calls = 0
        self.upsert_many_calls = 0
        self.bulk_gate = None

    async def upsert_one(self, row):
        self.upsert_one_calls += 1
        if self.upsert_one_calls <= self.fail_times:
            raise RemoteSyncError("upstream down", self.fail_status)
        self.rows[row["media_id"]] = row
        return {"success": True}

    async def upsert_many(self, rows):
        self.upsert_many_calls += 1
        if self.bulk_gate is not None:
            await self.bulk_gate.wait()
        if self.fail_bulk:
            raise RemoteSyncError("upstream down", 500)
        for row in rows:
            self.rows[row["media_id"]] = row
        return len(rows)

    async def fetch_all(self):
        return [{**row, "updated_at": "2024-01-01T00:00:00+00:00"} for row in self.rows.values()]

    async def delete_one(self, media_type, media_id):
        self.rows.pop(str(media_id), None)

    async def delete_all(self):
        self.rows.clear()


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class FakeRedis:
    """The subset of redis.asyncio.Redis the service uses, kept in a dict."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        self.store.pop(key, None)

    async def ping(self):
        return True


def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def mock_client_factory(handler: Callable[[httpx.Request], httpx.Response], calls: Optional[List[httpx.Request]] = None):
    """Stand-in for ``http_client.make_client`` that routes requests to ``handler``."""

    def recording_handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return handler(request)

    def make_client(headers=None, timeout=None):
        merged = {"User-Agent": settings.user_agent, **(headers or {})}
        return httpx.AsyncClient(transport=httpx.MockTransport(recording_handler), headers=merged)

    return make_client


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload), headers={"Content-Type": "application/json"})


def sign_up(client, email: str = "viewer@example.com", password: str = "correct-horse") -> Dict[str, str]:
    """Create an account through the API; returns Authorization headers for it."""
    resp = client.post("/api/auth/sign-up", json={"email": email, "password": password, "name": "Viewer"})
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def movie_item(media_id, watched=120.0, duration=7200.0, last_updated=1_700_000_000_000, title="Movie"):
    return {
        "id": media_id,
        "type": "movie",
        "title": title,
        "poster_path": "/poster.jpg",
        "progress": {"watched": watched, "duration": duration},
        "last_updated": last_updated,
    }


def tv_item(media_id, season, episode, watched=300.0, duration=2400.0, last_updated=1_700_000_000_000, title="Show"):
    key = f"s{season}e{episode}"
    return {
        "id": media_id,
        "type": "tv",
        "title": title,
        "progress": {"watched": watched, "duration": duration},
        "last_season_watched": str(season),
        "last_episode_watched": str(episode),
        "show_progress": {
            key: {
                "season": str(season),
                "episode": str(episode),
                "progress": {"watched": watched, "duration": duration},
                "last_updated": last_updated,
            }
        },
        "last_updated": last_updated,
    }

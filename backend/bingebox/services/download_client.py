"""
Download-link provider client (vidzee).

Movies aggregate three provider versions fetched concurrently; a failing
source contributes no links. TV episodes come from a single endpoint.
"""
import asyncio
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from bingebox.core.config import settings
from bingebox.services import http_client
from bingebox.services.http_client import BROWSER_USER_AGENT

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"^(download link( is)? not available)$", re.IGNORECASE)
_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)


def is_valid_http_url(url: Any) -> bool:
    return isinstance(url, str) and bool(_HTTP_URL.match(url))


def is_unavailable_placeholder(url: Any) -> bool:
    return bool(_PLACEHOLDER.match(str(url).strip()))


def _parse_link_list(payload: Any, source: str) -> List[Dict[str, str]]:
    if not isinstance(payload, dict) or payload.get("status") != "success":
        return []
    links = payload.get("download_links")
    if not isinstance(links, list):
        return []
    return [
        {
            "resolution": str(link.get("resolution") or ""),
            "url": str(link["url"]),
            "text": str(link.get("text") or ""),
            "source": source,
        }
        for link in links
        if isinstance(link, dict) and isinstance(link.get("url"), str) and link["url"]
    ]


def _parse_v4(payload: Any) -> List[Dict[str, str]]:
    return _parse_link_list(payload, "vidzee-v4")


def _parse_v3(payload: Any) -> List[Dict[str, str]]:
    return _parse_link_list(payload, "vidzee-v3")


def _parse_v1(payload: Any) -> List[Dict[str, str]]:
    """v1 answers either with a single page link or the legacy downloads array."""
    if not isinstance(payload, dict):
        return []
    page_url = payload.get("downloadLink") or payload.get("download_url") or payload.get("url")
    if isinstance(page_url, str) and page_url and not is_unavailable_placeholder(page_url) and is_valid_http_url(page_url):
        return [{"resolution": "page", "url": page_url, "text": "Open download page (v1)", "source": "vidzee-v1"}]

    downloads = (payload.get("data") or {}).get("downloads") if isinstance(payload.get("data"), dict) else None
    if isinstance(downloads, list):
        return [
            {
                "resolution": str(d.get("resolution") or ""),
                "url": d["url"],
                "text": f"Download {d.get('size') or ''} {{{d.get('resolution') or ''}}}",
                "source": "vidzee-v1",
            }
            for d in downloads
            if isinstance(d, dict)
            and isinstance(d.get("url"), str)
            and d["url"]
            and not is_unavailable_placeholder(d["url"])
            and is_valid_http_url(d["url"])
        ]
    return []


MOVIE_SOURCES: List[Dict[str, Any]] = [
    {"id": "vidzee-v4", "path": "/download/movie/v4/{id}", "parse": _parse_v4},
    {"id": "vidzee-v3", "path": "/download/movie/v3/{id}", "parse": _parse_v3},
    {"id": "vidzee-v1", "path": "/download/movie/v1/{id}", "parse": _parse_v1},
]


async def _fetch_source(client, tmdb_id: str, path: str, parse: Callable[[Any], List[Dict[str, str]]]) -> List[Dict[str, str]]:
    url = f"{settings.download_base_url}{path.format(id=tmdb_id)}"
    try:
        resp = await client.get(url)
        if not resp.is_success:
            return []
        try:
            payload = resp.json()
        except ValueError:
            return []
        return parse(payload)
    except Exception as e:
        logger.debug(f"Download source {url} failed: {e}")
        return []


def dedupe_links(links: List[Dict[str, str]]) -> List[Dict[str, str]]:
    """Drop invalid/placeholder URLs and repeated URLs, keeping first occurrence."""
    seen = set()
    deduped = []
    for link in links:
        url = link.get("url")
        if not is_valid_http_url(url) or is_unavailable_placeholder(url) or url in seen:
            continue
        seen.add(url)
        deduped.append(link)
    return deduped


async def fetch_movie_links(tmdb_id: str) -> List[Dict[str, str]]:
    async with http_client.make_client(headers={"User-Agent": BROWSER_USER_AGENT}) as client:
        results = await asyncio.gather(
            *[_fetch_source(client, tmdb_id, s["path"], s["parse"]) for s in MOVIE_SOURCES]
        )
    return dedupe_links([link for links in results for link in links])


async def fetch_tv_download(tmdb_id: str, season: str, episode: str) -> Dict[str, Any]:
    """Single-episode lookup; raises on upstream failure."""
    url = f"{settings.download_base_url}/download/tv/v1/{tmdb_id}/{season}/{episode}"
    async with http_client.make_client(headers={"User-Agent": BROWSER_USER_AGENT}) as client:
        resp = await client.get(url)
    if not resp.is_success:
        raise RuntimeError(f"API responded with status: {resp.status_code}")
    data: Dict[str, Any] = resp.json()
    # The provider sometimes returns empty season/episode fields
    return {**data, "season": data.get("season") or season, "episode": data.get("episode") or episode}


def movie_payload(tmdb_id: str, links: List[Dict[str, str]], error: Optional[str] = None) -> Dict[str, Any]:
    return {
        "status": "error" if error else "success",
        "tmdbId": tmdb_id,
        "downloadLinks": links,
        "error": error,
    }

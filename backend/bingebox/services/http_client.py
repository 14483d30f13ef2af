"""
Shared factory for upstream HTTP clients.

Every provider client opens its clients through ``make_client`` so timeouts and
the User-Agent stay consistent (and tests can swap in a mock transport).
"""
from typing import Dict, Optional
import httpx

from bingebox.core.config import settings

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


def make_client(headers: Optional[Dict[str, str]] = None, timeout: Optional[float] = None) -> httpx.AsyncClient:
    merged = {"User-Agent": settings.user_agent}
    if headers:
        merged.update(headers)
    return httpx.AsyncClient(
        timeout=timeout if timeout is not None else settings.request_timeout_seconds,
        headers=merged,
        follow_redirects=True,
    )

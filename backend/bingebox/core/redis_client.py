from redis import asyncio as aioredis
from redis.asyncio.connection import ConnectionPool
from .config import settings
import asyncio
import threading
from typing import Dict

# One client per event loop; a client created on another loop fails when awaited
_clients_by_loop: Dict[str, aioredis.Redis] = {}


def _loop_key() -> str:
	try:
		loop = asyncio.get_running_loop()
		return f"loop-{id(loop)}"
	except RuntimeError:
		return f"thread-{threading.get_ident()}"


def get_redis() -> aioredis.Redis:
	"""Get an async Redis client bound to the current event loop."""
	key = _loop_key()
	client = _clients_by_loop.get(key)
	if client is not None:
		return client

	pool = ConnectionPool.from_url(
		settings.redis_url,
		decode_responses=True,
		max_connections=20,
		socket_connect_timeout=5,
		socket_timeout=5,
		retry_on_timeout=True,
	)
	client = aioredis.Redis(connection_pool=pool)
	_clients_by_loop[key] = client
	return client

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
import logging

from bingebox.utils import logger as _logging_setup  # noqa: F401  configures the "bingebox" logger
from bingebox.core.config import settings
from bingebox.core.database import init_db, SessionLocal
from bingebox.core.redis_client import get_redis
from bingebox.services.ttl_cache import TTLCache
from bingebox.api import ai, auth, downloads, media, progress, sports, torrents, watchlist

logger = logging.getLogger(__name__)

app = FastAPI(title="BingeBox API", version="1.0.0")

# Add GZip compression middleware for better transfer performance
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(watchlist.router, prefix="/api", tags=["Watchlist"])
app.include_router(progress.router, prefix="/api", tags=["Watch Progress"])
app.include_router(media.router, prefix="/api", tags=["Media"])
app.include_router(sports.router, prefix="/api/sports", tags=["Sports"])
app.include_router(downloads.router, prefix="/api", tags=["Downloads"])
app.include_router(torrents.router, prefix="/api", tags=["Torrents"])
app.include_router(ai.router, prefix="/api", tags=["AI"])


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"Invalid {location}: {first.get('msg')}" if location else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse({"error": message}, status_code=400)


@app.on_event("startup")
async def startup_event():
    await init_db()
    # One download-link cache per process, injected into the download route
    app.state.download_cache = TTLCache(ttl_seconds=settings.download_cache_ttl_seconds)
    logger.info("BingeBox API started")


@app.get("/health")
async def health():
    checks = {"database": "ok", "redis": "ok"}
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check: database unavailable: {e}")
        checks["database"] = "error"
    finally:
        db.close()

    try:
        await get_redis().ping()
    except Exception as e:
        logger.error(f"Health check: redis unavailable: {e}")
        checks["redis"] = "error"

    healthy = all(v == "ok" for v in checks.values())
    return JSONResponse(
        {"status": "healthy" if healthy else "unhealthy", **checks},
        status_code=200 if healthy else 503,
    )


@app.get("/")
def root():
    return {"message": "BingeBox API", "docs": "/docs"}

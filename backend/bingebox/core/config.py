import os
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_database_url() -> str:
    user = os.getenv("POSTGRES_USER", "bingebox")
    password = os.getenv("POSTGRES_PASSWORD", "bingebox")
    db = os.getenv("POSTGRES_DB", "bingebox")
    host = os.getenv("POSTGRES_HOST", "db")
    return f"postgresql+psycopg2://{user}:{password}@{host}:5432/{db}"


class Settings(BaseSettings):
    database_url: str = os.getenv("DATABASE_URL", _default_database_url())
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # Sessions
    session_secret: str = os.getenv("SESSION_SECRET", "change-me-in-production")
    session_algorithm: str = "HS256"
    session_cookie_name: str = "bingebox_session"
    session_max_age_days: int = int(os.getenv("SESSION_MAX_AGE_DAYS", "30"))
    session_cookie_secure: bool = os.getenv("SESSION_COOKIE_SECURE", "true").lower() == "true"

    # Upstream providers
    tmdb_api_key: str = os.getenv("TMDB_API_KEY", "")
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    streamed_base_url: str = "https://streamed.su/api"
    download_base_url: str = "https://dl.vidzee.wtf"
    yts_base_url: str = "https://yts.mx/api/v2"
    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
    user_agent: str = "BingeBox/1.0"

    # AI (Gemini)
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "")
    gemini_vision_model: str = os.getenv("GEMINI_VISION_MODEL", "gemini-2.5-pro")
    gemini_chat_model: str = os.getenv("GEMINI_CHAT_MODEL", "gemini-2.0-flash")

    # Download-link cache (seconds)
    download_cache_ttl_seconds: int = int(os.getenv("DOWNLOAD_CACHE_TTL_SECONDS", "3600"))

    # Embedded player that posts progress messages
    player_origin: str = os.getenv("PLAYER_ORIGIN", "https://vidlink.pro")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()

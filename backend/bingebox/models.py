"""
models.py

SQLAlchemy models for users, sessions, watchlist entries and watch progress.
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Float, Text, UniqueConstraint, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from bingebox.utils.timezone import utc_now

Base = declarative_base()

WATCHLIST_STATUSES = ("watching", "should-watch", "dropped")
WATCHLIST_MEDIA_TYPES = ("movie", "tv")
PROGRESS_MEDIA_TYPES = ("movie", "tv", "anime")


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")


class UserSession(Base):
    """Server-side record of an issued session token; deleting it revokes the cookie."""
    __tablename__ = "user_sessions"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_id = Column(String(64), unique=True, nullable=False)  # jti claim
    remember_me = Column(Boolean, default=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    user = relationship("User", back_populates="sessions")


class WatchlistItem(Base):
    __tablename__ = "watchlists"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    media_id = Column(Integer, nullable=False)
    media_type = Column(String(10), nullable=False)  # 'movie' or 'tv'
    status = Column(String(20), nullable=False)  # 'watching' | 'should-watch' | 'dropped'
    # Denormalized display fields so list pages don't need a TMDB round-trip
    title = Column(String, nullable=True)
    poster_path = Column(String, nullable=True)
    release_date = Column(String(10), nullable=True)
    genres = Column(Text, nullable=True)  # JSON list of names, filled by the backfill script
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "media_id", "media_type", name="uq_watchlists_user_media"),
        Index("ix_watchlists_user_status", "user_id", "status"),
    )


class WatchProgress(Base):
    __tablename__ = "watch_progress"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    media_id = Column(String, nullable=False)  # TMDB id for movies/TV, MAL id for anime
    media_type = Column(String(10), nullable=False)
    title = Column(String, nullable=False, default="")
    poster_path = Column(String, nullable=True)
    backdrop_path = Column(String, nullable=True)
    watched_seconds = Column(Float, nullable=False, default=0)
    duration_seconds = Column(Float, nullable=False, default=0)
    last_season_watched = Column(String, nullable=True)
    last_episode_watched = Column(String, nullable=True)
    show_progress = Column(Text, nullable=False, default="{}")  # JSON: {"s1e1": EpisodeProgress}
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, index=True)

    __table_args__ = (
        UniqueConstraint("user_id", "media_id", "media_type", name="uq_watch_progress_user_media"),
    )

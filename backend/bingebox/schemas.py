"""
schemas.py

Pydantic schemas for request payloads and API responses.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any, List, Literal
import datetime


class UserSchema(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class SessionSchema(BaseModel):
    user: UserSchema
    expires_at: datetime.datetime
    remember_me: bool


# Auth payloads
class SignUpRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=8)
    name: Optional[str] = None


class SignInRequest(BaseModel):
    email: str
    password: str
    remember_me: bool = True


# Watchlist
class WatchlistUpdate(BaseModel):
    status: Optional[str] = None
    title: Optional[str] = None
    poster_path: Optional[str] = None
    release_date: Optional[str] = None


class WatchlistEntrySchema(BaseModel):
    media_id: int
    media_type: str
    status: str
    title: Optional[str] = None
    poster_path: Optional[str] = None
    release_date: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    model_config = ConfigDict(from_attributes=True)


# Watch progress (remote table shape)
class ProgressRowIn(BaseModel):
    user_id: Optional[int] = None
    media_id: str
    media_type: Literal["movie", "tv", "anime"]
    title: str = ""
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    watched_seconds: float = Field(0, ge=0)
    duration_seconds: float = Field(0, ge=0)
    last_season_watched: Optional[str] = None
    last_episode_watched: Optional[str] = None
    show_progress: Dict[str, Any] = Field(default_factory=dict)

    # The player reports ids and season/episode numbers as numbers or strings
    model_config = ConfigDict(coerce_numbers_to_str=True)


class ProgressBatch(BaseModel):
    items: List[ProgressRowIn]


class ProgressRowOut(BaseModel):
    media_id: str
    media_type: str
    title: str
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    watched_seconds: float
    duration_seconds: float
    last_season_watched: Optional[str] = None
    last_episode_watched: Optional[str] = None
    show_progress: Dict[str, Any]
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


class SaveProgressBeacon(BaseModel):
    action: str
    data: Dict[str, Any]
    userId: Optional[Any] = None


# AI
class MediaContext(BaseModel):
    type: str
    title: str
    overview: Optional[str] = None
    genres: Optional[List[str]] = None
    cast: Optional[List[str]] = None
    releaseDate: Optional[str] = None
    runtime: Optional[str] = None
    voteAverage: Optional[float] = None


class DetectedMedia(BaseModel):
    type: Literal["movie", "tv", "unknown"]
    title: str
    season: Optional[int] = None
    episode: Optional[int] = None
    confidence: Literal["high", "medium", "low"]
    description: str

"""Pydantic models for the shows API."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShowCreateRequest(CamelModel):
    """Inbound payload to look up and store a show."""

    show_name: str = Field(..., min_length=1, description="Show name as typed by the user, e.g. Breaking Bad")


class EpisodeResponse(CamelModel):
    season: int | None
    episode_number: int | None
    episode_name: str | None
    first_aired: date | None
    overview: str | None


class ShowResponse(CamelModel):
    """Representation of a stored show."""

    id: int
    name: str
    airs_day_of_week: str | None
    airs_time: str | None
    first_aired: date | None
    genre: list[str]
    network: str | None
    overview: str | None
    rating: float | None
    rating_count: int | None
    status: str | None
    poster: str | None
    subscribers: list[int]
    episodes: list[EpisodeResponse]


class MessageResponse(BaseModel):
    message: str

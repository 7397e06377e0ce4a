"""Persistence and query helpers for shows."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from showtrackr.core.config import settings
from showtrackr.db.models import Episode, Show, ShowGenre, Subscription, User
from showtrackr.services.tvdb_client import SeriesRecord

logger = logging.getLogger(__name__)

_SHOW_LOAD_OPTIONS = (
    selectinload(Show.genres),
    selectinload(Show.episodes),
    selectinload(Show.subscriptions),
)


class ShowNotFoundError(LookupError):
    """Raised when a show cannot be found, either upstream or locally."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} was not found.")
        self.name = name


class ShowConflictError(RuntimeError):
    """Raised when a show with the same id is already stored."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} already exists.")
        self.name = name


def build_show(record: SeriesRecord) -> Show:
    return Show(
        id=record.id,
        name=record.name,
        airs_day_of_week=record.airs_day_of_week,
        airs_time=record.airs_time,
        first_aired=record.first_aired,
        network=record.network,
        overview=record.overview,
        rating=record.rating,
        rating_count=record.rating_count,
        status=record.status,
        poster=record.poster,
        genres=[ShowGenre(position=index, name=name) for index, name in enumerate(record.genre)],
        episodes=[
            Episode(
                position=index,
                season=episode.season,
                episode_number=episode.episode_number,
                episode_name=episode.episode_name,
                first_aired=episode.first_aired,
                overview=episode.overview,
            )
            for index, episode in enumerate(record.episodes)
        ],
        subscriptions=[],
    )


async def create_show(session: AsyncSession, record: SeriesRecord) -> Show:
    """Insert a fully aggregated show; a duplicate id raises ShowConflictError."""

    show = build_show(record)
    session.add(show)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        if await session.get(Show, record.id) is not None:
            logger.info("Show already stored", extra={"series_id": record.id})
            raise ShowConflictError(record.name) from exc
        raise

    logger.info("Stored show", extra={"series_id": show.id, "episodes": len(show.episodes)})
    return show


async def list_shows(
    session: AsyncSession,
    *,
    genre: str | None = None,
    alphabet: str | None = None,
    limit: int | None = None,
) -> Sequence[Show]:
    """Return shows filtered by genre, else by leading letters, else the first page."""

    stmt = select(Show).options(*_SHOW_LOAD_OPTIONS).order_by(Show.name, Show.id)
    if genre:
        stmt = stmt.where(Show.genres.any(ShowGenre.name == genre))
    elif alphabet:
        letters = sorted(set(alphabet.lower()))
        stmt = stmt.where(or_(*(Show.name.istartswith(letter, autoescape=True) for letter in letters)))
    else:
        stmt = stmt.limit(limit or settings.show_page_size)

    result = await session.scalars(stmt)
    return list(result)


async def get_show(session: AsyncSession, show_id: int) -> Show:
    show = await session.scalar(select(Show).options(*_SHOW_LOAD_OPTIONS).where(Show.id == show_id))
    if show is None:
        raise ShowNotFoundError(f"Show {show_id}")
    return show


async def subscribe(session: AsyncSession, show: Show, user: User) -> Show:
    """Link a user to a show; no-op when already subscribed."""

    if user.id not in show.subscriber_ids:
        show.subscriptions.append(Subscription(user_id=user.id))
        await session.flush()
    return show


async def unsubscribe(session: AsyncSession, show: Show, user: User) -> Show:
    for subscription in list(show.subscriptions):
        if subscription.user_id == user.id:
            show.subscriptions.remove(subscription)
    await session.flush()
    return show


async def delete_show(session: AsyncSession, show_id: int) -> bool:
    """Delete a show together with its genres, episodes and subscriptions; returns True when removed."""

    show = await session.get(Show, show_id, options=list(_SHOW_LOAD_OPTIONS))
    if show is None:
        return False

    await session.delete(show)
    await session.flush()
    return True

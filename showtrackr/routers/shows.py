"""API endpoints for looking up, storing and browsing shows."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from showtrackr.db.models import Show
from showtrackr.db.session import get_session
from showtrackr.schema.show import EpisodeResponse, MessageResponse, ShowCreateRequest, ShowResponse
from showtrackr.schema.user import CredentialsRequest
from showtrackr.services import credential_store, show_repository
from showtrackr.services.show_aggregator import create_show
from showtrackr.services.tvdb_client import TvdbClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shows", tags=["shows"])


def get_show_database(request: Request) -> TvdbClient:
    """FastAPI dependency wrapping the process-wide HTTP client."""

    return TvdbClient(request.app.state.http_client)


def _map_show(show: Show) -> ShowResponse:
    return ShowResponse(
        id=show.id,
        name=show.name,
        airs_day_of_week=show.airs_day_of_week,
        airs_time=show.airs_time,
        first_aired=show.first_aired,
        genre=show.genre_names,
        network=show.network,
        overview=show.overview,
        rating=show.rating,
        rating_count=show.rating_count,
        status=show.status,
        poster=show.poster,
        subscribers=show.subscriber_ids,
        episodes=[
            EpisodeResponse(
                season=episode.season,
                episode_number=episode.episode_number,
                episode_name=episode.episode_name,
                first_aired=episode.first_aired,
                overview=episode.overview,
            )
            for episode in show.episodes
        ],
    )


@router.post(
    "",
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={404: {"model": MessageResponse}, 409: {"model": MessageResponse}},
)
async def add_show(
    payload: ShowCreateRequest,
    session: AsyncSession = Depends(get_session),
    client: TvdbClient = Depends(get_show_database),
) -> Response:
    """Look the show up in the show database and store it with its episodes and poster."""

    show = await create_show(session, client, payload.show_name)
    await session.commit()
    logger.info("Added show", extra={"series_id": show.id, "show_name": show.name})
    return Response(status_code=status.HTTP_200_OK)


@router.get("", response_model=list[ShowResponse])
async def list_shows(
    genre: str | None = Query(None),
    alphabet: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> list[ShowResponse]:
    shows = await show_repository.list_shows(session, genre=genre, alphabet=alphabet)
    return [_map_show(show) for show in shows]


@router.get("/{show_id}", response_model=ShowResponse, responses={404: {"model": MessageResponse}})
async def get_show(show_id: int, session: AsyncSession = Depends(get_session)) -> ShowResponse:
    show = await show_repository.get_show(session, show_id)
    return _map_show(show)


async def _authenticated_user(session: AsyncSession, credentials: CredentialsRequest):
    user = await credential_store.authenticate(session, credentials.email, credentials.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password.")
    return user


@router.post("/{show_id}/subscribe", response_model=ShowResponse)
async def subscribe(
    show_id: int,
    credentials: CredentialsRequest,
    session: AsyncSession = Depends(get_session),
) -> ShowResponse:
    user = await _authenticated_user(session, credentials)
    show = await show_repository.get_show(session, show_id)
    await show_repository.subscribe(session, show, user)
    await session.commit()
    return _map_show(show)


@router.post("/{show_id}/unsubscribe", response_model=ShowResponse)
async def unsubscribe(
    show_id: int,
    credentials: CredentialsRequest,
    session: AsyncSession = Depends(get_session),
) -> ShowResponse:
    user = await _authenticated_user(session, credentials)
    show = await show_repository.get_show(session, show_id)
    await show_repository.unsubscribe(session, show, user)
    await session.commit()
    return _map_show(show)

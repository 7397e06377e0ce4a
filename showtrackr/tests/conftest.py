"""Shared fixtures: an in-memory database and a stub show database."""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from showtrackr.db.models import Base
from showtrackr.services.tvdb_client import TvdbClient

TVDB_BASE_URL = "http://tvdb.test"
TVDB_API_KEY = "test-key"
POSTER_BYTES = b"\x89PNG\r\n\x1a\nfake-poster-bytes"


def _memory_db_url() -> str:
    return f"sqlite+aiosqlite:///file:showtrackr_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def search_xml(series: list[tuple[int, str]]) -> bytes:
    entries = "".join(
        f"<Series><seriesid>{series_id}</seriesid><SeriesName>{name}</SeriesName><language>en</language></Series>"
        for series_id, name in series
    )
    return f'<?xml version="1.0" encoding="UTF-8" ?><Data>{entries}</Data>'.encode()


def episode_xml(season: int, number: int, name: str, first_aired: str = "") -> str:
    return (
        "<Episode>"
        f"<SeasonNumber>{season}</SeasonNumber><EpisodeNumber>{number}</EpisodeNumber>"
        f"<EpisodeName>{name}</EpisodeName><FirstAired>{first_aired}</FirstAired>"
        f"<Overview>{name} overview</Overview>"
        "</Episode>"
    )


def series_xml(
    series_id: int,
    name: str,
    *,
    genre: str = "",
    poster: str = "",
    first_aired: str = "",
    rating: str = "",
    episodes: list[str] | None = None,
) -> bytes:
    body = (
        "<Series>"
        f"<id>{series_id}</id><SeriesName>{name}</SeriesName>"
        "<Airs_DayOfWeek>Sunday</Airs_DayOfWeek><Airs_Time>9:00 PM</Airs_Time>"
        f"<FirstAired>{first_aired}</FirstAired><Genre>{genre}</Genre><Network>AMC</Network>"
        f"<Overview>About {name}</Overview><Rating>{rating}</Rating><RatingCount>1200</RatingCount>"
        "<Runtime>60</Runtime><Status>Ended</Status>"
        f"<poster>{poster}</poster>"
        "</Series>"
    )
    return f'<?xml version="1.0" encoding="UTF-8" ?><Data>{body}{"".join(episodes or [])}</Data>'.encode()


BREAKING_BAD = series_xml(
    81189,
    "Breaking Bad",
    genre="Crime|Drama",
    poster="posters/81189-22.jpg",
    first_aired="2008-01-20",
    rating="9.3",
    episodes=[
        episode_xml(1, 1, "Pilot", "2008-01-20"),
        episode_xml(1, 2, "Cat's in the Bag...", "2008-01-27"),
    ],
)


class StubShowDatabase:
    """Answers the three show database calls from in-memory fixtures and records every request."""

    def __init__(self) -> None:
        self.search_results: dict[str, list[tuple[int, str]]] = {
            "breaking_bad": [(81189, "Breaking Bad")],
            "the_office": [(73244, "The Office (US)"), (78107, "The Office")],
        }
        self.series: dict[int, bytes] = {
            81189: BREAKING_BAD,
            73244: series_xml(
                73244,
                "The Office (US)",
                genre="|Comedy|",
                poster="posters/73244-1.jpg",
                episodes=[episode_xml(1, 1, "Pilot", "2005-03-24")],
            ),
            78107: series_xml(78107, "The Office", genre="|Comedy|", poster="posters/78107-1.jpg"),
        }
        self.poster = POSTER_BYTES
        self.poster_type = "image/png"
        self.fail_posters = False
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/GetSeries.php":
            token = request.url.params["seriesname"]
            return httpx.Response(200, content=search_xml(self.search_results.get(token, [])))

        if path.startswith(f"/api/{TVDB_API_KEY}/series/"):
            series_id = int(path.split("/")[4])
            if series_id not in self.series:
                return httpx.Response(404)
            return httpx.Response(200, content=self.series[series_id])

        if path.startswith("/banners/"):
            if self.fail_posters:
                raise httpx.ConnectError("poster host unreachable", request=request)
            return httpx.Response(200, content=self.poster, headers={"content-type": self.poster_type})

        return httpx.Response(404)


@pytest.fixture
def show_database() -> StubShowDatabase:
    return StubShowDatabase()


@pytest_asyncio.fixture
async def http_client(show_database: StubShowDatabase) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(show_database.handler)) as client:
        yield client


@pytest.fixture
def tvdb(http_client: httpx.AsyncClient) -> TvdbClient:
    return TvdbClient(http_client, base_url=TVDB_BASE_URL, api_key=TVDB_API_KEY, language="en")


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    db_engine = create_async_engine(_memory_db_url(), future=True, connect_args={"uri": True})
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield db_engine

    await db_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session
        await session.rollback()

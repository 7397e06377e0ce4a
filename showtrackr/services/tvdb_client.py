"""Async client for the TheTVDB XML API."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from xml.etree import ElementTree as ET

import httpx

from showtrackr.core.config import settings

logger = logging.getLogger(__name__)

_SPACE_RE = re.compile(r" ")
_UNSAFE_RE = re.compile(r"[^\w-]+", re.ASCII)
DEFAULT_POSTER_TYPE = "application/octet-stream"


class ShowDatabaseError(RuntimeError):
    """Raised when the show database cannot be reached or returns an unusable payload."""


@dataclass(slots=True)
class EpisodeRecord:
    season: int | None
    episode_number: int | None
    episode_name: str | None
    first_aired: date | None
    overview: str | None


@dataclass(slots=True)
class SeriesRecord:
    """A show as described by the show database, ready to be persisted."""

    id: int
    name: str
    airs_day_of_week: str | None = None
    airs_time: str | None = None
    first_aired: date | None = None
    genre: list[str] = field(default_factory=list)
    network: str | None = None
    overview: str | None = None
    rating: float | None = None
    rating_count: int | None = None
    status: str | None = None
    poster: str | None = None
    episodes: list[EpisodeRecord] = field(default_factory=list)


@dataclass(slots=True)
class PosterImage:
    content: bytes
    content_type: str


def normalize_series_name(name: str) -> str:
    """Turn a typed show name into the query token the API expects (`Breaking Bad` -> `breaking_bad`)."""

    token = _SPACE_RE.sub("_", name.lower())
    return _UNSAFE_RE.sub("", token)


def split_genres(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [genre for genre in raw.split("|") if genre]


def _parse_xml(payload: bytes) -> ET.Element:
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise ShowDatabaseError("Invalid XML payload from show database") from exc

    if root.tag.lower() != "data":
        logger.warning("Unexpected show database root element", extra={"tag": root.tag})
        raise ShowDatabaseError("Unexpected root element in show database response")
    return root


def _invalid(kind: str, key: str, raw: str) -> ShowDatabaseError:
    logger.warning("Unparseable show database field", extra={"field": key, "value": raw})
    return ShowDatabaseError(f"Invalid {kind} in show database response")


def _children(element: ET.Element, tag: str) -> list[ET.Element]:
    return [child for child in element if child.tag.lower() == tag]


def _fields(element: ET.Element) -> dict[str, str]:
    """Map lower-cased child tags to their stripped text."""

    return {child.tag.lower(): (child.text or "").strip() for child in element}


def _text(values: dict[str, str], key: str) -> str | None:
    return values.get(key) or None


def _int(values: dict[str, str], key: str) -> int | None:
    raw = values.get(key)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise _invalid("integer", key, raw) from exc


def _float(values: dict[str, str], key: str) -> float | None:
    raw = values.get(key)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise _invalid("number", key, raw) from exc


def _date(values: dict[str, str], key: str) -> date | None:
    raw = values.get(key)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise _invalid("date", key, raw) from exc


def parse_search_results(payload: bytes) -> list[int]:
    """Return the ids of every series in a GetSeries response, in document order."""

    root = _parse_xml(payload)
    series_ids: list[int] = []
    for series in _children(root, "series"):
        values = _fields(series)
        series_id = _int(values, "seriesid") or _int(values, "id")
        if series_id is None:
            raise ShowDatabaseError("Series entry without an id")
        series_ids.append(series_id)
    return series_ids


def _parse_episode(element: ET.Element) -> EpisodeRecord:
    values = _fields(element)
    return EpisodeRecord(
        season=_int(values, "seasonnumber"),
        episode_number=_int(values, "episodenumber"),
        episode_name=_text(values, "episodename"),
        first_aired=_date(values, "firstaired"),
        overview=_text(values, "overview"),
    )


def parse_series_record(payload: bytes) -> SeriesRecord:
    """Build a SeriesRecord from a full series+episodes document."""

    root = _parse_xml(payload)
    series_elements = _children(root, "series")
    if not series_elements:
        raise ShowDatabaseError("Series record missing from show database response")

    values = _fields(series_elements[0])
    series_id = _int(values, "id")
    name = _text(values, "seriesname")
    if series_id is None or name is None:
        raise ShowDatabaseError("Series record missing id or name")

    return SeriesRecord(
        id=series_id,
        name=name,
        airs_day_of_week=_text(values, "airs_dayofweek"),
        airs_time=_text(values, "airs_time"),
        first_aired=_date(values, "firstaired"),
        genre=split_genres(values.get("genre")),
        network=_text(values, "network"),
        overview=_text(values, "overview"),
        rating=_float(values, "rating"),
        rating_count=_int(values, "ratingcount"),
        status=_text(values, "status"),
        poster=_text(values, "poster"),
        episodes=[_parse_episode(episode) for episode in _children(root, "episode")],
    )


class TvdbClient:
    """Wraps an `httpx.AsyncClient` with the three calls the aggregation pipeline needs."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        language: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self._base_url = (base_url or settings.tvdb_base_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.tvdb_api_key
        self._language = language or settings.tvdb_language
        self._timeout = timeout if timeout is not None else settings.tvdb_timeout_seconds

    async def _get(self, url: str, *, params: dict[str, str] | None = None) -> httpx.Response:
        try:
            response = await self._client.get(url, params=params, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ShowDatabaseError("Unable to contact show database") from exc
        return response

    async def search_series(self, token: str) -> list[int]:
        url = f"{self._base_url}/api/GetSeries.php"
        response = await self._get(url, params={"seriesname": token})
        return parse_search_results(response.content)

    async def fetch_series(self, series_id: int) -> SeriesRecord:
        if not self._api_key:
            raise ShowDatabaseError("Series lookups require SHOWTRACKR_TVDB_API_KEY")

        url = f"{self._base_url}/api/{self._api_key}/series/{series_id}/all/{self._language}.xml"
        response = await self._get(url)
        return parse_series_record(response.content)

    async def fetch_poster(self, path: str) -> PosterImage:
        url = f"{self._base_url}/banners/{path.lstrip('/')}"
        response = await self._get(url)
        content_type = response.headers.get("content-type") or DEFAULT_POSTER_TYPE
        return PosterImage(content=response.content, content_type=content_type)


__all__ = [
    "EpisodeRecord",
    "PosterImage",
    "SeriesRecord",
    "ShowDatabaseError",
    "TvdbClient",
    "normalize_series_name",
    "parse_search_results",
    "parse_series_record",
    "split_genres",
]

"""Three-stage pipeline that turns a typed show name into a persisted show."""

from __future__ import annotations

import base64
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from showtrackr.db.models import Show
from showtrackr.services import show_repository
from showtrackr.services.tvdb_client import PosterImage, SeriesRecord, TvdbClient, normalize_series_name

logger = logging.getLogger(__name__)


def poster_data_uri(image: PosterImage) -> str:
    encoded = base64.b64encode(image.content).decode("ascii")
    return f"data:{image.content_type};base64,{encoded}"


class ShowAggregator:
    """Resolve, fetch and inline a show. Stages run one after another; the first failure aborts."""

    def __init__(self, client: TvdbClient) -> None:
        self._client = client

    async def resolve_series_id(self, show_name: str) -> int:
        token = normalize_series_name(show_name)
        series_ids = await self._client.search_series(token)
        logger.info("Resolved series name", extra={"series_name": token, "matches": len(series_ids)})
        if not series_ids:
            raise show_repository.ShowNotFoundError(show_name)
        # Several matches: the first result wins.
        return series_ids[0]

    async def inline_poster(self, record: SeriesRecord) -> SeriesRecord:
        if not record.poster:
            logger.info("Series has no poster", extra={"series_id": record.id})
            return record

        image = await self._client.fetch_poster(record.poster)
        logger.info("Fetched poster", extra={"series_id": record.id, "poster": record.poster})
        record.poster = poster_data_uri(image)
        return record

    async def aggregate(self, show_name: str) -> SeriesRecord:
        series_id = await self.resolve_series_id(show_name)
        record = await self._client.fetch_series(series_id)
        logger.info(
            "Fetched series record",
            extra={"series_id": record.id, "episodes": len(record.episodes)},
        )
        return await self.inline_poster(record)


async def create_show(session: AsyncSession, client: TvdbClient, show_name: str) -> Show:
    """Run the aggregation pipeline and persist its result exactly once."""

    record = await ShowAggregator(client).aggregate(show_name)
    return await show_repository.create_show(session, record)

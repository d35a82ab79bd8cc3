# podsearch/repository/search_repo.py
import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.models.orm import Episode, Podcast, Segment

TEXT_SEARCH_CONFIG = "english"


def segment_tsvector():
    return func.to_tsvector(TEXT_SEARCH_CONFIG, Segment.text)


def build_result_statement(podcast_id: uuid.UUID | None = None, limit: int | None = None):
    """Segment rows joined with the episode and podcast fields a search result carries."""
    stmt = (
        select(
            Segment.id.label("segment_id"),
            Segment.episode_id,
            Episode.title.label("episode_title"),
            Episode.podcast_id,
            Podcast.title.label("podcast_title"),
            Segment.start_time,
            Segment.end_time,
            Segment.text,
            Episode.audio_file_url,
        )
        .join(Episode, Episode.id == Segment.episode_id)
        .join(Podcast, Podcast.id == Episode.podcast_id)
    )

    if podcast_id is not None:
        stmt = stmt.where(Episode.podcast_id == podcast_id)
    if limit:
        stmt = stmt.limit(limit)
    return stmt


def build_search_statement(query: str, podcast_id: uuid.UUID | None = None, limit: int | None = None):
    """Full-text match over segment text, best match first."""
    ts_query = func.plainto_tsquery(TEXT_SEARCH_CONFIG, query)
    document = segment_tsvector()

    return (
        build_result_statement(podcast_id, limit)
        .where(document.op("@@")(ts_query))
        .order_by(func.ts_rank(document, ts_query).desc())
    )


def build_keyword_sample_statement(words: list[str], limit: int = 50):
    """Segment texts matching any of the given words."""
    document = segment_tsvector()
    return (
        select(Segment.text)
        .where(or_(*[
            document.op("@@")(func.plainto_tsquery(TEXT_SEARCH_CONFIG, word))
            for word in words
        ]))
        .limit(limit)
    )


async def search_segments(
    db: AsyncSession,
    query: str,
    podcast_id: uuid.UUID | None = None,
    limit: int | None = None,
) -> list[dict]:
    result = await db.execute(build_search_statement(query, podcast_id, limit))
    return [dict(row) for row in result.mappings().all()]


async def sample_segment_texts(db: AsyncSession, words: list[str], limit: int = 50) -> list[str]:
    if not words:
        return []
    result = await db.execute(build_keyword_sample_statement(words, limit))
    return list(result.scalars().all())

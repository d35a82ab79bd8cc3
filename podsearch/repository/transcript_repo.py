# podsearch/repository/transcript_repo.py
import uuid

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.models.orm import Segment, Transcript


async def get_transcript_by_episode(db: AsyncSession, episode_id: uuid.UUID) -> Transcript | None:
    result = await db.execute(
        select(Transcript).where(Transcript.episode_id == episode_id)
    )
    return result.scalar_one_or_none()


async def get_segments_by_episode(db: AsyncSession, episode_id: uuid.UUID) -> list[Segment]:
    result = await db.execute(
        select(Segment)
        .where(Segment.episode_id == episode_id)
        .order_by(Segment.start_time)
    )
    return list(result.scalars().all())


async def get_segments_in_window(
    db: AsyncSession,
    episode_id: uuid.UUID,
    window_start: float,
    window_end: float,
) -> list[Segment]:
    """Segments of one episode that lie inside [window_start, window_end]."""
    result = await db.execute(
        select(Segment)
        .where(
            and_(
                Segment.episode_id == episode_id,
                Segment.start_time >= window_start,
                Segment.end_time <= window_end,
            )
        )
        .order_by(Segment.start_time)
    )
    return list(result.scalars().all())

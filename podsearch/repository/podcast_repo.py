# podsearch/repository/podcast_repo.py
import uuid
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.models.orm import Clip, Episode, Podcast, Segment, Transcript, TranscriptionJob


async def list_podcasts(db: AsyncSession) -> list[Podcast]:
    result = await db.execute(select(Podcast).order_by(Podcast.title))
    return list(result.scalars().all())


async def get_podcast(db: AsyncSession, podcast_id: uuid.UUID) -> Podcast | None:
    return await db.get(Podcast, podcast_id)


async def create_podcast(db: AsyncSession, **fields: Any) -> Podcast:
    podcast = Podcast(**fields)
    db.add(podcast)
    await db.commit()
    await db.refresh(podcast)
    return podcast


async def update_podcast(db: AsyncSession, podcast_id: uuid.UUID, **fields: Any) -> Podcast | None:
    podcast = await db.get(Podcast, podcast_id)
    if podcast is None:
        return None

    for key, value in fields.items():
        setattr(podcast, key, value)
    await db.commit()
    await db.refresh(podcast)
    return podcast


async def delete_episode_children(db: AsyncSession, episode_ids: list[uuid.UUID]) -> None:
    """Remove every row that hangs off the given episodes. Does not commit."""
    if not episode_ids:
        return

    # segments reference transcripts, so they go first
    await db.execute(delete(Segment).where(Segment.episode_id.in_(episode_ids)))
    await db.execute(delete(Clip).where(Clip.episode_id.in_(episode_ids)))
    await db.execute(delete(Transcript).where(Transcript.episode_id.in_(episode_ids)))
    await db.execute(delete(TranscriptionJob).where(TranscriptionJob.episode_id.in_(episode_ids)))


async def delete_podcast(db: AsyncSession, podcast_id: uuid.UUID) -> list[Episode] | None:
    """
    Delete a podcast together with its episodes and everything under them.

    Returns the deleted episodes (callers clean up their audio files),
    or None when the podcast does not exist.
    """
    podcast = await db.get(Podcast, podcast_id)
    if podcast is None:
        return None

    result = await db.execute(select(Episode).where(Episode.podcast_id == podcast_id))
    episodes = list(result.scalars().all())
    episode_ids = [episode.id for episode in episodes]

    await delete_episode_children(db, episode_ids)
    if episode_ids:
        await db.execute(delete(Episode).where(Episode.id.in_(episode_ids)))
    await db.execute(delete(Podcast).where(Podcast.id == podcast_id))
    await db.commit()

    return episodes

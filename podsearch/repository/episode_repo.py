# podsearch/repository/episode_repo.py
import math
import uuid
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.models.orm import Episode, Segment, Transcript
from podsearch.models.status import TranscriptionStatus
from podsearch.repository.podcast_repo import delete_episode_children


async def list_episodes_by_podcast(db: AsyncSession, podcast_id: uuid.UUID) -> list[Episode]:
    result = await db.execute(
        select(Episode)
        .where(Episode.podcast_id == podcast_id)
        .order_by(Episode.publication_date.desc())
    )
    return list(result.scalars().all())


async def get_episode(db: AsyncSession, episode_id: uuid.UUID) -> Episode | None:
    return await db.get(Episode, episode_id)


async def create_episode(db: AsyncSession, **fields: Any) -> Episode:
    fields.setdefault("transcription_status", TranscriptionStatus.PENDING)
    episode = Episode(**fields)
    db.add(episode)
    await db.commit()
    await db.refresh(episode)
    return episode


async def update_episode(db: AsyncSession, episode_id: uuid.UUID, **fields: Any) -> Episode | None:
    episode = await db.get(Episode, episode_id)
    if episode is None:
        return None

    for key, value in fields.items():
        setattr(episode, key, value)
    await db.commit()
    await db.refresh(episode)
    return episode


async def set_transcription_status(
    db: AsyncSession,
    episode_id: uuid.UUID,
    status: TranscriptionStatus,
) -> None:
    await db.execute(
        update(Episode)
        .where(Episode.id == episode_id)
        .values(transcription_status=status)
    )
    await db.commit()


async def delete_episode(db: AsyncSession, episode_id: uuid.UUID) -> Episode | None:
    episode = await db.get(Episode, episode_id)
    if episode is None:
        return None

    await delete_episode_children(db, [episode_id])
    await db.execute(delete(Episode).where(Episode.id == episode_id))
    await db.commit()
    return episode


async def save_transcription_result(
    db: AsyncSession,
    episode_id: uuid.UUID,
    raw_transcript: dict[str, Any],
    segments: list,
    audio_duration_ms: float | None,
) -> Transcript:
    """
    Store the transcript, its segments and the completed status together.

    Nothing is visible to other sessions until the single commit at the end,
    so a failure part way through leaves no transcript or segment rows.
    """
    # a re-run replaces whatever an earlier attempt left behind
    await db.execute(delete(Segment).where(Segment.episode_id == episode_id))
    await db.execute(delete(Transcript).where(Transcript.episode_id == episode_id))

    transcript = Transcript(episode_id=episode_id, raw_transcript=raw_transcript)
    db.add(transcript)
    await db.flush()

    db.add_all(
        Segment(
            transcript_id=transcript.id,
            episode_id=episode_id,
            start_time=draft.start_time,
            end_time=draft.end_time,
            text=draft.text,
        )
        for draft in segments
    )

    duration = math.ceil(audio_duration_ms / 1000) if audio_duration_ms is not None else None
    await db.execute(
        update(Episode)
        .where(Episode.id == episode_id)
        .values(transcription_status=TranscriptionStatus.COMPLETED, duration=duration)
    )
    await db.commit()
    await db.refresh(transcript)
    return transcript

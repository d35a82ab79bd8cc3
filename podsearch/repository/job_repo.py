# podsearch/repository/job_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.models.orm import Episode, TranscriptionJob
from podsearch.models.status import JobStatus, TranscriptionStatus


async def create_job(db: AsyncSession, episode_id: uuid.UUID, audio_url: str) -> TranscriptionJob:
    job = TranscriptionJob(
        episode_id=episode_id,
        audio_url=audio_url,
        status=JobStatus.QUEUED,
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)
    return job


async def get_job(db: AsyncSession, job_id: uuid.UUID) -> TranscriptionJob | None:
    return await db.get(TranscriptionJob, job_id)


async def get_active_job(db: AsyncSession, episode_id: uuid.UUID) -> TranscriptionJob | None:
    result = await db.execute(
        select(TranscriptionJob)
        .where(
            TranscriptionJob.episode_id == episode_id,
            TranscriptionJob.status.in_(JobStatus.active()),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def claim_next_job(db: AsyncSession) -> TranscriptionJob | None:
    """Move the oldest queued job to running and return it."""
    result = await db.execute(
        select(TranscriptionJob)
        .where(TranscriptionJob.status == JobStatus.QUEUED)
        .order_by(TranscriptionJob.created_at)
        .limit(1)
        .with_for_update(skip_locked=True)
    )
    job = result.scalar_one_or_none()
    if job is None:
        await db.rollback()
        return None

    job.status = JobStatus.RUNNING
    job.started_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(job)
    return job


async def mark_job_running(db: AsyncSession, job_id: uuid.UUID) -> bool:
    """Queued -> running. False when another runner got there first."""
    result = await db.execute(
        update(TranscriptionJob)
        .where(
            TranscriptionJob.id == job_id,
            TranscriptionJob.status == JobStatus.QUEUED,
        )
        .values(status=JobStatus.RUNNING, started_at=datetime.now(timezone.utc))
    )
    await db.commit()
    return result.rowcount == 1


async def finish_job(
    db: AsyncSession,
    job_id: uuid.UUID,
    status: JobStatus,
    external_id: str | None = None,
    error_message: str | None = None,
) -> None:
    await db.execute(
        update(TranscriptionJob)
        .where(TranscriptionJob.id == job_id)
        .values(
            status=status,
            external_id=external_id,
            error_message=error_message,
            finished_at=datetime.now(timezone.utc),
        )
    )
    await db.commit()


async def list_active_jobs(db: AsyncSession) -> list[TranscriptionJob]:
    result = await db.execute(
        select(TranscriptionJob)
        .where(TranscriptionJob.status.in_(JobStatus.active()))
        .order_by(TranscriptionJob.created_at)
    )
    return list(result.scalars().all())


async def abandon_job(db: AsyncSession, job: TranscriptionJob, error_message: str) -> None:
    """Fail a job nobody is running anymore, and its episode with it."""
    await db.execute(
        update(TranscriptionJob)
        .where(TranscriptionJob.id == job.id)
        .values(
            status=JobStatus.FAILED,
            error_message=error_message,
            finished_at=datetime.now(timezone.utc),
        )
    )
    await db.execute(
        update(Episode)
        .where(Episode.id == job.episode_id)
        .values(transcription_status=TranscriptionStatus.FAILED)
    )
    await db.commit()

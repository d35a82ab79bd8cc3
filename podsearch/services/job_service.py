import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.core.database import Database
from podsearch.core.exceptions import ConflictError
from podsearch.models.orm import Episode, TranscriptionJob
from podsearch.models.status import JobStatus, TranscriptionStatus
from podsearch.repository import job_repo
from podsearch.repository.episode_repo import set_transcription_status
from podsearch.services.orchestrator import OrchestrationResult, TranscriptionOrchestrator

logger = logging.getLogger(__name__)

ABANDONED_JOB_MESSAGE = "Transcription job was abandoned before it finished"


class JobService:
    """
    Durable transcription queue backed by the transcription_jobs table.

    A job that has been queued or running for longer than one full polling
    budget plus ``stale_margin_seconds`` belongs to a process that is gone.
    Such jobs are failed on worker start and whenever the episode is queued
    again, so an episode can never stay locked by a dead job.
    """

    def __init__(
        self,
        db: Database,
        orchestrator: TranscriptionOrchestrator,
        stale_margin_seconds: float = 600.0,
    ):
        self.db = db
        self.orchestrator = orchestrator
        self.stale_margin_seconds = stale_margin_seconds

    @property
    def stale_after(self) -> timedelta:
        budget = self.orchestrator.poll_interval * self.orchestrator.max_poll_attempts
        return timedelta(seconds=budget + self.stale_margin_seconds)

    def is_stale(self, job: TranscriptionJob, now: Optional[datetime] = None) -> bool:
        since = job.started_at if job.status == JobStatus.RUNNING else job.created_at
        if since is None:
            return False
        # sqlite hands back naive UTC timestamps
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        return (now or datetime.now(timezone.utc)) - since > self.stale_after

    async def recover_stale_jobs(self) -> int:
        async with self.db.session() as session:
            stale = [job for job in await job_repo.list_active_jobs(session) if self.is_stale(job)]
            for job in stale:
                logger.warning(f"[QUEUE] abandoning stale job={job.id} episode={job.episode_id} status={job.status.value}")
                await job_repo.abandon_job(session, job, ABANDONED_JOB_MESSAGE)
        return len(stale)

    async def enqueue(self, session: AsyncSession, episode: Episode) -> TranscriptionJob:
        """Queue a transcription; the episode goes back to pending in the same commit."""
        active = await job_repo.get_active_job(session, episode.id)
        if active is not None and self.is_stale(active):
            logger.warning(f"[QUEUE] abandoning stale job={active.id} episode={episode.id}")
            await job_repo.abandon_job(session, active, ABANDONED_JOB_MESSAGE)
            active = None
        if active is not None:
            raise ConflictError(detail="Transcription is already queued or running for this episode")

        episode.transcription_status = TranscriptionStatus.PENDING
        job = await job_repo.create_job(session, episode.id, episode.audio_file_url)
        await session.refresh(episode)
        logger.info(f"[QUEUE] enqueue job={job.id} episode={episode.id}")
        return job

    async def run_job(self, job_id: uuid.UUID) -> OrchestrationResult | None:
        async with self.db.session() as session:
            claimed = await job_repo.mark_job_running(session, job_id)
            job = await job_repo.get_job(session, job_id) if claimed else None

        if job is None:
            logger.info(f"[QUEUE] job={job_id} not queued anymore, skipping")
            return None
        return await self._execute(job)

    async def run_next(self) -> OrchestrationResult | None:
        async with self.db.session() as session:
            job = await job_repo.claim_next_job(session)

        if job is None:
            return None
        return await self._execute(job)

    async def _execute(self, job: TranscriptionJob) -> OrchestrationResult:
        logger.info(f"[QUEUE] start job={job.id} episode={job.episode_id}")
        result = OrchestrationResult(success=False, error="Transcription job was interrupted")
        try:
            result = await self.orchestrator.run(job.episode_id, job.audio_url)
        except Exception as e:
            logger.exception(f"[QUEUE] job={job.id} crashed")
            result = OrchestrationResult(success=False, error=str(e))
            async with self.db.session() as session:
                await set_transcription_status(session, job.episode_id, TranscriptionStatus.FAILED)
        finally:
            await self._finish(job, result)
        return result

    async def _finish(self, job: TranscriptionJob, result: OrchestrationResult) -> None:
        status = JobStatus.COMPLETED if result.success else JobStatus.FAILED
        async with self.db.session() as session:
            await job_repo.finish_job(
                session,
                job.id,
                status,
                external_id=result.external_id,
                error_message=result.error,
            )
        logger.info(f"[QUEUE] finish job={job.id} status={status.value}")

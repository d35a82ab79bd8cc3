"""
Admin API: podcast and episode management, transcription control and
dashboard counts. Every route requires an admin bearer token.
"""
import asyncio
import logging
import tempfile
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.core.config import Configs
from podsearch.core.dependencies import get_configs, get_current_admin, get_db, get_job_service, get_storage
from podsearch.core.exceptions import (
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
    UpstreamError,
    ValidationError,
)
from podsearch.models.orm import Clip, Episode, Podcast, Segment, TranscriptionJob
from podsearch.models.status import JobStatus, TranscriptionStatus
from podsearch.repository import episode_repo, podcast_repo, transcript_repo
from podsearch.schemas.admin_schema import DashboardResponse
from podsearch.schemas.base_schema import Message
from podsearch.schemas.episode_schema import (
    EpisodeResponse,
    EpisodeUpdateRequest,
    RetryTranscriptionResponse,
    SegmentResponse,
    TranscriptResponse,
)
from podsearch.schemas.podcast_schema import PodcastRequest, PodcastResponse
from podsearch.services.job_service import JobService
from podsearch.services.storage_service import StorageService
from podsearch.utils.audio import UPLOAD_CHUNK_SIZE, audio_extension, is_allowed_audio_type

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_admin)])

_datetime_adapter = TypeAdapter(datetime)


def _remove_audio(storage: StorageService, container: str, episodes: List[Episode]) -> None:
    """Best effort: the rows are already gone, a leftover blob is only logged."""
    for episode in episodes:
        blob_name = StorageService.blob_name_from_url(episode.audio_file_url or "")
        if not blob_name:
            continue
        try:
            storage.delete(container, blob_name)
        except StorageError as e:
            logger.error(f"[ADMIN] Error deleting audio file {blob_name}: {e}")


async def _discard_upload(
    db: AsyncSession,
    storage: StorageService,
    container: str,
    blob_name: str,
    episode_id: Optional[uuid.UUID],
) -> None:
    """Undo a half-created episode: its row, if one was written, and its uploaded audio."""
    try:
        await db.rollback()
        if episode_id is not None:
            await episode_repo.delete_episode(db, episode_id)
    except SQLAlchemyError as e:
        logger.error(f"[ADMIN] Error removing episode {episode_id}: {e}")

    try:
        await asyncio.to_thread(storage.delete, container, blob_name)
    except StorageError as e:
        logger.error(f"[ADMIN] Error deleting audio file {blob_name}: {e}")


# ---------------------------------------------------------------------------
# Podcasts
# ---------------------------------------------------------------------------


@router.get("/podcasts", response_model=List[PodcastResponse])
async def list_podcasts(db: AsyncSession = Depends(get_db)):
    try:
        return await podcast_repo.list_podcasts(db)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))


@router.post("/podcasts", status_code=status.HTTP_201_CREATED, response_model=PodcastResponse)
async def create_podcast(payload: PodcastRequest, db: AsyncSession = Depends(get_db)):
    if not payload.title:
        raise ValidationError(detail="Podcast title is required")

    try:
        podcast = await podcast_repo.create_podcast(db, **payload.model_dump())
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    logger.info(f"[ADMIN] created podcast={podcast.id}")
    return podcast


@router.get("/podcasts/{podcast_id}", response_model=PodcastResponse)
async def get_podcast(podcast_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    try:
        podcast = await podcast_repo.get_podcast(db, podcast_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if podcast is None:
        raise NotFoundError(detail="Podcast not found")
    return podcast


@router.put("/podcasts/{podcast_id}", response_model=PodcastResponse)
async def update_podcast(podcast_id: uuid.UUID, payload: PodcastRequest, db: AsyncSession = Depends(get_db)):
    if not payload.title:
        raise ValidationError(detail="Podcast title is required")

    try:
        podcast = await podcast_repo.update_podcast(db, podcast_id, **payload.model_dump(exclude_unset=True))
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if podcast is None:
        raise NotFoundError(detail="Podcast not found")
    return podcast


@router.delete("/podcasts/{podcast_id}", response_model=Message)
async def delete_podcast(
    podcast_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    cfg: Configs = Depends(get_configs),
):
    try:
        episodes = await podcast_repo.delete_podcast(db, podcast_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if episodes is None:
        raise NotFoundError(detail="Podcast not found")

    await asyncio.to_thread(_remove_audio, storage, cfg.AZURE_AUDIO_CONTAINER, episodes)
    logger.info(f"[ADMIN] deleted podcast={podcast_id} episodes={len(episodes)}")
    return Message(message="Podcast deleted successfully")


@router.get("/podcasts/{podcast_id}/episodes", response_model=List[EpisodeResponse])
async def list_podcast_episodes(podcast_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    try:
        return await episode_repo.list_episodes_by_podcast(db, podcast_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))


# ---------------------------------------------------------------------------
# Episodes
# ---------------------------------------------------------------------------


async def _spool_upload(upload: UploadFile, max_bytes: int):
    """Copy the upload into a temp file, enforcing the size cap."""
    spooled = tempfile.SpooledTemporaryFile(max_size=UPLOAD_CHUNK_SIZE)
    size = 0
    while True:
        chunk = await upload.read(UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            spooled.close()
            raise PayloadTooLargeError(
                detail=f"File size limit exceeded (max: {max_bytes // (1024 * 1024)}MB)"
            )
        spooled.write(chunk)
    spooled.seek(0)
    return spooled


def _parse_publication_date(value: Optional[str]) -> datetime:
    if not value or not value.strip():
        return datetime.now(timezone.utc)
    try:
        return _datetime_adapter.validate_python(value.strip())
    except PydanticValidationError:
        raise ValidationError(detail="Invalid publication date")


@router.post("/episodes", status_code=status.HTTP_201_CREATED, response_model=EpisodeResponse)
async def create_episode(
    background_tasks: BackgroundTasks,
    podcast_id: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    publication_date: Optional[str] = Form(None),
    audio_file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    job_service: JobService = Depends(get_job_service),
    cfg: Configs = Depends(get_configs),
):
    if not podcast_id:
        raise ValidationError(detail="Podcast ID is required")
    if not title:
        raise ValidationError(detail="Episode title is required")
    if audio_file is None:
        raise ValidationError(detail="Audio file is required")
    if not is_allowed_audio_type(audio_file.content_type):
        raise ValidationError(detail=f"Unsupported audio type: {audio_file.content_type}")

    try:
        podcast_uuid = uuid.UUID(podcast_id)
    except ValueError:
        raise ValidationError(detail="Invalid podcast ID")
    published_at = _parse_publication_date(publication_date)

    try:
        podcast = await podcast_repo.get_podcast(db, podcast_uuid)
        if podcast is None:
            raise NotFoundError(detail="Podcast not found")

        spooled = await _spool_upload(audio_file, cfg.MAX_UPLOAD_BYTES)
        try:
            blob_name = f"{uuid.uuid4()}{audio_extension(audio_file.filename)}"
            audio_url = await asyncio.to_thread(
                storage.upload,
                cfg.AZURE_AUDIO_CONTAINER,
                blob_name,
                spooled,
                audio_file.content_type,
            )
        finally:
            spooled.close()

        episode = None
        try:
            episode = await episode_repo.create_episode(
                db,
                podcast_id=podcast_uuid,
                title=title,
                description=description,
                audio_file_url=audio_url,
                publication_date=published_at,
                transcription_status=TranscriptionStatus.PENDING,
            )
            job = await job_service.enqueue(db, episode)
        except Exception:
            await _discard_upload(
                db,
                storage,
                cfg.AZURE_AUDIO_CONTAINER,
                blob_name,
                episode.id if episode is not None else None,
            )
            raise
    except HTTPException:
        raise
    except StorageError as e:
        raise UpstreamError(detail=str(e))
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))
    except Exception as e:
        logger.error(f"[ADMIN] Error creating episode: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create episode")

    if cfg.RUN_JOBS_INLINE:
        background_tasks.add_task(job_service.run_job, job.id)

    logger.info(f"[ADMIN] created episode={episode.id} job={job.id}")
    return episode


@router.get("/episodes/{episode_id}", response_model=EpisodeResponse)
async def get_episode(episode_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    try:
        episode = await episode_repo.get_episode(db, episode_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if episode is None:
        raise NotFoundError(detail="Episode not found")
    return episode


@router.put("/episodes/{episode_id}", response_model=EpisodeResponse)
async def update_episode(episode_id: uuid.UUID, payload: EpisodeUpdateRequest, db: AsyncSession = Depends(get_db)):
    if not payload.title:
        raise ValidationError(detail="Episode title is required")

    try:
        episode = await episode_repo.update_episode(db, episode_id, **payload.model_dump(exclude_unset=True))
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if episode is None:
        raise NotFoundError(detail="Episode not found")
    return episode


@router.delete("/episodes/{episode_id}", response_model=Message)
async def delete_episode(
    episode_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    cfg: Configs = Depends(get_configs),
):
    try:
        episode = await episode_repo.delete_episode(db, episode_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if episode is None:
        raise NotFoundError(detail="Episode not found")

    await asyncio.to_thread(_remove_audio, storage, cfg.AZURE_AUDIO_CONTAINER, [episode])
    return Message(message="Episode deleted successfully")


@router.get("/episodes/{episode_id}/transcript", response_model=TranscriptResponse)
async def get_episode_transcript(episode_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    try:
        transcript = await transcript_repo.get_transcript_by_episode(db, episode_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if transcript is None:
        raise NotFoundError(detail="Transcript not found")
    return transcript


@router.get("/episodes/{episode_id}/segments", response_model=List[SegmentResponse])
async def get_episode_segments(episode_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    try:
        return await transcript_repo.get_segments_by_episode(db, episode_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))


@router.post(
    "/episodes/{episode_id}/retry-transcription",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=RetryTranscriptionResponse,
)
async def retry_transcription(
    episode_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    job_service: JobService = Depends(get_job_service),
    cfg: Configs = Depends(get_configs),
):
    try:
        episode = await episode_repo.get_episode(db, episode_id)
        if episode is None:
            raise NotFoundError(detail="Episode not found")

        job = await job_service.enqueue(db, episode)
    except HTTPException:
        raise
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if cfg.RUN_JOBS_INLINE:
        background_tasks.add_task(job_service.run_job, job.id)

    logger.info(f"[ADMIN] retry transcription episode={episode_id} job={job.id}")
    return RetryTranscriptionResponse(
        message="Transcription restarted",
        job_id=job.id,
        episode=EpisodeResponse.model_validate(episode),
    )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def _count(db: AsyncSession, stmt) -> int:
    value = (await db.execute(stmt)).scalar()
    return int(value or 0)


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(db: AsyncSession = Depends(get_db)):
    try:
        by_status = {s.value: 0 for s in TranscriptionStatus}
        rows = await db.execute(
            select(Episode.transcription_status, func.count()).group_by(Episode.transcription_status)
        )
        for episode_status, count in rows.all():
            by_status[TranscriptionStatus(episode_status).value] = count

        return DashboardResponse(
            podcasts=await _count(db, select(func.count()).select_from(Podcast)),
            episodes=sum(by_status.values()),
            episodes_by_status=by_status,
            segments=await _count(db, select(func.count()).select_from(Segment)),
            clips=await _count(db, select(func.count()).select_from(Clip)),
            active_jobs=await _count(
                db,
                select(func.count())
                .select_from(TranscriptionJob)
                .where(TranscriptionJob.status.in_(JobStatus.active())),
            ),
        )
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

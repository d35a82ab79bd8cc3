import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.core.dependencies import get_clip_builder, get_db, get_search_service
from podsearch.core.exceptions import ClipError, NotFoundError, StorageError, UpstreamError, ValidationError
from podsearch.repository import clip_repo, episode_repo, podcast_repo, transcript_repo
from podsearch.schemas.clip_schema import ClipRequest, ClipResponse
from podsearch.schemas.episode_schema import EpisodeResponse, SegmentResponse
from podsearch.schemas.podcast_schema import PodcastResponse
from podsearch.schemas.search_schema import SearchResponse
from podsearch.services.clip_service import ClipBuilder
from podsearch.services.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/podcasts", response_model=List[PodcastResponse])
async def list_podcasts(db: AsyncSession = Depends(get_db)):
    try:
        return await podcast_repo.list_podcasts(db)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))


@router.get("/podcasts/{podcast_id}", response_model=PodcastResponse)
async def get_podcast(podcast_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    try:
        podcast = await podcast_repo.get_podcast(db, podcast_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if podcast is None:
        raise NotFoundError(detail="Podcast not found")
    return podcast


@router.get("/podcasts/{podcast_id}/episodes", response_model=List[EpisodeResponse])
async def list_podcast_episodes(podcast_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    try:
        return await episode_repo.list_episodes_by_podcast(db, podcast_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))


@router.get("/episodes/{episode_id}", response_model=EpisodeResponse)
async def get_episode(episode_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    try:
        episode = await episode_repo.get_episode(db, episode_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if episode is None:
        raise NotFoundError(detail="Episode not found")
    return episode


@router.get("/episodes/{episode_id}/segments", response_model=List[SegmentResponse])
async def get_episode_segments(episode_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    try:
        return await transcript_repo.get_segments_by_episode(db, episode_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))


@router.get("/search", response_model=SearchResponse)
async def search(
    query: Optional[str] = Query(None),
    podcast_id: Optional[uuid.UUID] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    include_context: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    search_service: SearchService = Depends(get_search_service),
):
    """
    Full-text search over transcript segments.

    Related keywords are only looked up when the search found something.
    """
    if not query or not query.strip():
        raise ValidationError(detail="Search query is required")

    try:
        results = await search_service.search(
            db,
            query,
            podcast_id=podcast_id,
            limit=limit,
            include_context=include_context,
        )
        related_keywords = await search_service.related_keywords(db, query) if results else []
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[SEARCH] Search error: {str(e)}")
        raise HTTPException(status_code=500, detail="Search failed")

    return SearchResponse(results=results, related_keywords=related_keywords)


@router.post("/clips", status_code=status.HTTP_201_CREATED, response_model=ClipResponse)
async def create_clip(
    payload: ClipRequest,
    db: AsyncSession = Depends(get_db),
    clip_builder: ClipBuilder = Depends(get_clip_builder),
):
    try:
        return await clip_builder.create_clip(
            db,
            episode_id=payload.episode_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            transcript_text=payload.transcript_text,
            search_query=payload.search_query,
        )
    except HTTPException:
        raise
    except (ClipError, StorageError, SQLAlchemyError) as e:
        logger.error(f"[CLIP] Error creating clip: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create clip")


@router.get("/clips/{clip_id}", response_model=ClipResponse)
async def get_clip(clip_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    try:
        clip = await clip_repo.get_clip(db, clip_id)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if clip is None:
        raise NotFoundError(detail="Clip not found")
    return clip

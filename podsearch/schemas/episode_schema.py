from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from podsearch.models.status import TranscriptionStatus
from podsearch.schemas.base_schema import ModelBaseInfo


class EpisodeUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    publication_date: Optional[datetime] = None


class EpisodeResponse(ModelBaseInfo):
    """Episode response schema"""
    podcast_id: UUID
    title: str
    description: Optional[str] = None
    audio_file_url: str
    publication_date: Optional[datetime] = None
    transcription_status: TranscriptionStatus
    duration: Optional[int] = None


class TranscriptResponse(ModelBaseInfo):
    episode_id: UUID
    raw_transcript: Dict[str, Any]


class SegmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    transcript_id: UUID
    episode_id: UUID
    start_time: float
    end_time: float
    text: str


class RetryTranscriptionResponse(BaseModel):
    message: str
    job_id: UUID
    episode: EpisodeResponse

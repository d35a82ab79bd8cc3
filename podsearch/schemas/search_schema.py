from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class ContextSegment(BaseModel):
    id: UUID
    start_time: float
    end_time: float
    text: str


class SearchResult(BaseModel):
    segment_id: UUID
    episode_id: UUID
    episode_title: str
    podcast_id: UUID
    podcast_title: str
    start_time: float
    end_time: float
    text: str
    audio_file_url: str
    context_before: Optional[List[ContextSegment]] = None
    context_after: Optional[List[ContextSegment]] = None


class SearchResponse(BaseModel):
    results: List[SearchResult]
    related_keywords: List[str]

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from podsearch.schemas.base_schema import ModelBaseInfo


class ClipRequest(BaseModel):
    episode_id: UUID
    start_time: float = Field(..., ge=0)
    end_time: float = Field(..., ge=0)
    transcript_text: Optional[str] = None
    search_query: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "episode_id": "550e8400-e29b-41d4-a716-446655440000",
                "start_time": 62.4,
                "end_time": 91.0,
                "transcript_text": "and that is why we moved everything to postgres",
                "search_query": "postgres",
            }
        }
    }


class ClipResponse(ModelBaseInfo):
    episode_id: UUID
    start_time: float
    end_time: float
    transcript_text: Optional[str] = None
    search_query: Optional[str] = None
    audio_clip_url: str

from typing import Optional

from pydantic import BaseModel, field_validator

from podsearch.schemas.base_schema import ModelBaseInfo


class PodcastRequest(BaseModel):
    """Create/update payload; title is required on both"""
    title: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    cover_image_url: Optional[str] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value else value

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Test Show",
                "description": "Weekly conversations about software",
                "author": "Jane Host",
                "cover_image_url": "https://cdn.example.com/covers/test-show.png",
            }
        }
    }


class PodcastResponse(ModelBaseInfo):
    title: str
    description: Optional[str] = None
    author: Optional[str] = None
    cover_image_url: Optional[str] = None

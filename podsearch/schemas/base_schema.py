from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ModelBaseInfo(BaseModel):
    """Base response schema with timestamp metadata"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Message(BaseModel):
    message: str

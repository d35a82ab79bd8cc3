# podsearch/models/orm/transcript.py
import uuid
from typing import Any

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from podsearch.models.orm.base import Base, JSONType, TimestampMixin, UUIDMixin


class Transcript(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "transcripts"

    episode_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("episodes.id"), unique=True, nullable=False)
    raw_transcript: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)

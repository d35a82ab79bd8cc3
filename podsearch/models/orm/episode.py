# podsearch/models/orm/episode.py
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from podsearch.models.orm.base import Base, TimestampMixin, UUIDMixin
from podsearch.models.status import TranscriptionStatus


class Episode(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "episodes"

    podcast_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("podcasts.id"), nullable=False, index=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    audio_file_url: Mapped[str] = mapped_column(Text, nullable=False)
    publication_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    transcription_status: Mapped[TranscriptionStatus] = mapped_column(
        Enum(
            TranscriptionStatus,
            name="transcription_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=TranscriptionStatus.PENDING,
        nullable=False,
    )
    # seconds, set once transcription completes
    duration: Mapped[int | None] = mapped_column(Integer)

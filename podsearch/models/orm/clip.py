# podsearch/models/orm/clip.py
import uuid

from sqlalchemy import Float, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from podsearch.models.orm.base import Base, TimestampMixin, UUIDMixin


class Clip(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "clips"

    episode_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("episodes.id"), nullable=False, index=True)

    start_time: Mapped[float] = mapped_column(Float, nullable=False)
    end_time: Mapped[float] = mapped_column(Float, nullable=False)

    # snapshot of the text at creation time
    transcript_text: Mapped[str | None] = mapped_column(Text)
    search_query: Mapped[str | None] = mapped_column(Text)
    audio_clip_url: Mapped[str] = mapped_column(Text, nullable=False)

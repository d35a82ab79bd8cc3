# podsearch/models/orm/segment.py
import uuid

from sqlalchemy import DDL, Float, ForeignKey, Index, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from podsearch.models.orm.base import Base, TimestampMixin, UUIDMixin


class Segment(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "transcript_segments"
    __table_args__ = (
        Index("idx_transcript_segments_episode_start", "episode_id", "start_time"),
    )

    transcript_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("transcripts.id"), nullable=False)
    episode_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("episodes.id"), nullable=False)

    # seconds
    start_time: Mapped[float] = mapped_column(Float, nullable=False)
    end_time: Mapped[float] = mapped_column(Float, nullable=False)

    text: Mapped[str] = mapped_column(Text, nullable=False)


event.listen(
    Segment.__table__,
    "after_create",
    DDL(
        "CREATE INDEX IF NOT EXISTS idx_transcript_segments_text_search "
        "ON transcript_segments USING gin (to_tsvector('english', text))"
    ).execute_if(dialect="postgresql"),
)

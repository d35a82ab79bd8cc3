# podsearch/models/orm/podcast.py
from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from podsearch.models.orm.base import Base, TimestampMixin, UUIDMixin


class Podcast(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "podcasts"

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    author: Mapped[str | None] = mapped_column(Text)
    cover_image_url: Mapped[str | None] = mapped_column(Text)

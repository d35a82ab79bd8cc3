# podsearch/repository/clip_repo.py
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.models.orm import Clip


async def create_clip(db: AsyncSession, **fields: Any) -> Clip:
    clip = Clip(**fields)
    db.add(clip)
    await db.commit()
    await db.refresh(clip)
    return clip


async def get_clip(db: AsyncSession, clip_id: uuid.UUID) -> Clip | None:
    return await db.get(Clip, clip_id)

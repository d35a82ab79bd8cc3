import logging
import re
import uuid
from collections import Counter
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.core.exceptions import ValidationError
from podsearch.repository.search_repo import sample_segment_texts, search_segments
from podsearch.repository.transcript_repo import get_segments_in_window
from podsearch.schemas.search_schema import ContextSegment, SearchResult

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 4
CONTEXT_STEP_SECONDS = 30


def query_words(query: str) -> List[str]:
    """Lower-cased query words long enough to be worth matching on."""
    return [w for w in re.split(r"\s+", query.lower()) if len(w) >= MIN_KEYWORD_LENGTH]


def rank_keywords(texts: List[str], exclude: List[str], top: int = 10) -> List[str]:
    """Most frequent words (> 3 chars) across texts, minus the excluded ones."""
    excluded = set(exclude)
    counts = Counter(
        word
        for text in texts
        for word in re.split(r"\s+", text.lower())
        if len(word) >= MIN_KEYWORD_LENGTH and word not in excluded
    )
    return [word for word, _ in counts.most_common(top)]


class SearchService:
    def __init__(self, default_limit: int = 20, keyword_sample: int = 50, keyword_top: int = 10):
        self.default_limit = default_limit
        self.keyword_sample = keyword_sample
        self.keyword_top = keyword_top

    async def search(
        self,
        session: AsyncSession,
        query: str,
        podcast_id: Optional[uuid.UUID] = None,
        limit: Optional[int] = None,
        include_context: bool = False,
        context_size: int = 1,
    ) -> List[SearchResult]:
        if not query or not query.strip():
            raise ValidationError(detail="Search query is required")

        rows = await search_segments(
            session,
            query.strip(),
            podcast_id=podcast_id,
            limit=limit or self.default_limit,
        )
        results = [SearchResult(**row) for row in rows]

        if include_context and context_size > 0:
            for result in results:
                await self._attach_context(session, result, context_size)
        return results

    async def _attach_context(self, session: AsyncSession, result: SearchResult, context_size: int) -> None:
        span = context_size * CONTEXT_STEP_SECONDS
        neighbours = await get_segments_in_window(
            session,
            result.episode_id,
            result.start_time - span,
            result.end_time + span,
        )
        before, after = [], []
        for segment in neighbours:
            if segment.id == result.segment_id:
                continue
            context = ContextSegment(
                id=segment.id,
                start_time=segment.start_time,
                end_time=segment.end_time,
                text=segment.text,
            )
            (before if segment.start_time < result.start_time else after).append(context)
        result.context_before = before
        result.context_after = after

    async def related_keywords(self, session: AsyncSession, query: str) -> List[str]:
        words = query_words(query or "")
        if not words:
            return []

        try:
            texts = await sample_segment_texts(session, words, limit=self.keyword_sample)
        except SQLAlchemyError as e:
            logger.warning(f"[SEARCH] related keywords lookup failed: {e}")
            await session.rollback()
            return []

        return rank_keywords(texts, exclude=words, top=self.keyword_top)

"""
Drive one transcription attempt for an episode end to end.

    pending -> in_progress -> completed | failed

Every run ends in a terminal status. Nothing here is retried beyond the
client's fixed poll ceiling; a failed episode is re-run from scratch by
queueing a new job.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from podsearch.core.database import Database
from podsearch.core.exceptions import TranscriptionError, TranscriptionTimeoutError
from podsearch.models.status import TranscriptionStatus
from podsearch.repository.episode_repo import save_transcription_result, set_transcription_status
from podsearch.services.segmenter import Segmenter
from podsearch.services.transcription_client import AssemblyAIClient

logger = logging.getLogger(__name__)


@dataclass
class OrchestrationResult:
    success: bool
    external_id: Optional[str] = None
    error: Optional[str] = None
    timed_out: bool = False
    segment_count: int = 0


class TranscriptionOrchestrator:
    def __init__(
        self,
        db: Database,
        client: AssemblyAIClient,
        segmenter: Segmenter,
        poll_interval: float = 30.0,
        max_poll_attempts: int = 20,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.db = db
        self.client = client
        self.segmenter = segmenter
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.sleep = sleep

    async def _set_status(self, episode_id: uuid.UUID, status: TranscriptionStatus) -> None:
        async with self.db.session() as session:
            await set_transcription_status(session, episode_id, status)
        logger.info(f"[TRANSCRIBE] episode={episode_id} status={status.value}")

    async def run(self, episode_id: uuid.UUID, audio_url: str) -> OrchestrationResult:
        await self._set_status(episode_id, TranscriptionStatus.IN_PROGRESS)

        external_id = None
        try:
            external_id = await self.client.submit(audio_url)
            result = await self.client.wait_for_completion(
                external_id,
                interval=self.poll_interval,
                max_attempts=self.max_poll_attempts,
                sleep=self.sleep,
            )
        except TranscriptionError as e:
            logger.error(f"[TRANSCRIBE] episode={episode_id} job={external_id} failed: {e}")
            await self._set_status(episode_id, TranscriptionStatus.FAILED)
            return OrchestrationResult(
                success=False,
                external_id=external_id,
                error=str(e),
                timed_out=isinstance(e, TranscriptionTimeoutError),
            )

        try:
            drafts = self.segmenter.segment(result.words)
            async with self.db.session() as session:
                await save_transcription_result(
                    session,
                    episode_id,
                    raw_transcript=result.raw,
                    segments=drafts,
                    audio_duration_ms=result.audio_duration,
                )
        except Exception as e:
            logger.exception(f"[TRANSCRIBE] episode={episode_id} could not store transcript")
            await self._set_status(episode_id, TranscriptionStatus.FAILED)
            return OrchestrationResult(success=False, external_id=external_id, error=f"Error saving transcript: {e}")

        logger.info(
            f"[TRANSCRIBE] episode={episode_id} status={TranscriptionStatus.COMPLETED.value} "
            f"segments={len(drafts)}"
        )
        return OrchestrationResult(success=True, external_id=external_id, segment_count=len(drafts))

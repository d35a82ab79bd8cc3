import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from podsearch.core.exceptions import (
    TranscriptionError,
    TranscriptionFailedError,
    TranscriptionSubmitError,
    TranscriptionTimeoutError,
)

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"


@dataclass
class TranscriptionResult:
    id: str
    status: str
    words: List[Dict[str, Any]] = field(default_factory=list)
    # milliseconds
    audio_duration: Optional[float] = None
    error: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TranscriptionResult":
        return cls(
            id=str(payload.get("id", "")),
            status=payload.get("status", ""),
            words=payload.get("words") or [],
            audio_duration=payload.get("audio_duration"),
            error=payload.get("error"),
            raw=payload,
        )

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def is_error(self) -> bool:
        return self.status == STATUS_ERROR


class AssemblyAIClient:
    """Thin async wrapper over the AssemblyAI v2 transcript API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.assemblyai.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": self.api_key,
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )

    async def submit(
        self,
        audio_url: str,
        speaker_labels: bool = False,
        punctuate: bool = True,
        format_text: bool = True,
    ) -> str:
        """Request a transcription and return the provider's job id."""
        body = {
            "audio_url": audio_url,
            "speaker_labels": speaker_labels,
            "punctuate": punctuate,
            "format_text": format_text,
        }
        try:
            async with self._client() as client:
                response = await client.post("/v2/transcript", json=body)
                response.raise_for_status()
                job_id = response.json()["id"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error(f"[ASSEMBLYAI] submit failed audio_url={audio_url}: {e}")
            raise TranscriptionSubmitError(f"Transcription request failed: {e}") from e

        logger.info(f"[ASSEMBLYAI] submitted job={job_id}")
        return job_id

    async def fetch(self, job_id: str) -> TranscriptionResult:
        try:
            async with self._client() as client:
                response = await client.get(f"/v2/transcript/{job_id}")
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[ASSEMBLYAI] fetch failed job={job_id}: {e}")
            raise TranscriptionError(f"Could not fetch transcription {job_id}: {e}") from e

        return TranscriptionResult.from_payload(payload)

    async def wait_for_completion(
        self,
        job_id: str,
        interval: float = 30.0,
        max_attempts: int = 20,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> TranscriptionResult:
        """
        Poll until the job completes.

        Only "not finished yet" answers are retried, up to ``max_attempts``
        polls spaced ``interval`` seconds apart. A provider error status or a
        transport failure ends the wait immediately.
        """
        for attempt in range(1, max_attempts + 1):
            result = await self.fetch(job_id)

            if result.is_completed:
                logger.info(f"[ASSEMBLYAI] job={job_id} completed after {attempt} poll(s)")
                return result
            if result.is_error:
                raise TranscriptionFailedError(f"Transcription failed: {result.error}")

            logger.debug(f"[ASSEMBLYAI] job={job_id} status={result.status} attempt={attempt}/{max_attempts}")
            await sleep(interval)

        raise TranscriptionTimeoutError("Transcription timed out")

"""
Clip creation.

Two ways to point at a time range of an episode:

- fragment (default): the episode's own audio URL with a ``#t=start,end``
  media fragment. No new file; players that honour fragments seek to it.
- trim: cut the range out with ffmpeg, upload the result to the clip
  container and reference that file.
"""

import asyncio
import logging
import os
import subprocess
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.core.exceptions import ClipError, NotFoundError, StorageError, ValidationError
from podsearch.models.orm import Clip, Episode
from podsearch.repository.clip_repo import create_clip
from podsearch.repository.episode_repo import get_episode
from podsearch.services.storage_service import StorageService
from podsearch.utils.audio import audio_extension, format_seconds

logger = logging.getLogger(__name__)

STRATEGY_FRAGMENT = "fragment"
STRATEGY_TRIM = "trim"


def validate_time_range(start_time: float, end_time: float) -> None:
    if start_time < 0 or end_time < 0:
        raise ValidationError(detail="Start time and end time must not be negative")
    if start_time >= end_time:
        raise ValidationError(detail="Start time must be before end time")


def fragment_url(audio_file_url: str, start_time: float, end_time: float) -> str:
    return f"{audio_file_url}#t={format_seconds(start_time)},{format_seconds(end_time)}"


def cut_audio(ffmpeg_bin: str, input_path: str, output_path: str, start_sec: float, end_sec: float) -> None:
    cmd = [
        ffmpeg_bin, "-y",
        "-i", input_path,
        "-ss", format_seconds(start_sec),
        "-to", format_seconds(end_sec),
        "-c:a", "libmp3lame",
        "-q:a", "4",
        output_path,
    ]
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True, timeout=600)
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
        logger.error(f"[CLIP] ffmpeg failed: {e}")
        raise ClipError(f"Failed to cut audio clip: {e}") from e


class ClipBuilder:
    def __init__(
        self,
        storage: StorageService,
        clip_container: str,
        strategy: str = STRATEGY_FRAGMENT,
        ffmpeg_bin: str = "ffmpeg",
        scratch_dir: str = "uploads",
    ):
        if strategy not in (STRATEGY_FRAGMENT, STRATEGY_TRIM):
            raise ValueError(f"Unknown clip strategy: {strategy}")
        self.storage = storage
        self.clip_container = clip_container
        self.strategy = strategy
        self.ffmpeg_bin = ffmpeg_bin
        self.scratch_dir = scratch_dir

    def trim_and_upload(self, audio_file_url: str, start_time: float, end_time: float) -> str:
        """Blocking: download, cut, upload. Returns the clip's public URL."""
        unique_id = uuid.uuid4()
        temp_dir = os.path.join(self.scratch_dir, "temp")
        os.makedirs(temp_dir, exist_ok=True)

        source_ext = audio_extension(StorageService.blob_name_from_url(audio_file_url))
        input_path = os.path.join(temp_dir, f"{unique_id}-input{source_ext}")
        output_path = os.path.join(temp_dir, f"{unique_id}-clip.mp3")

        downloaded = None
        try:
            downloaded = self.storage.download(audio_file_url, input_path)
            cut_audio(self.ffmpeg_bin, downloaded, output_path, start_time, end_time)
            with open(output_path, "rb") as f:
                return self.storage.upload(
                    self.clip_container,
                    f"{unique_id}-clip.mp3",
                    f,
                    content_type="audio/mpeg",
                )
        finally:
            # never remove a local source file we did not download
            for path in (input_path if downloaded == input_path else None, output_path):
                if path and os.path.exists(path):
                    os.unlink(path)

    async def build_clip_url(self, episode: Episode, start_time: float, end_time: float) -> str:
        if self.strategy == STRATEGY_TRIM:
            return await asyncio.to_thread(
                self.trim_and_upload, episode.audio_file_url, start_time, end_time
            )
        return fragment_url(episode.audio_file_url, start_time, end_time)

    async def create_clip(
        self,
        session: AsyncSession,
        episode_id: uuid.UUID,
        start_time: float,
        end_time: float,
        transcript_text: Optional[str] = None,
        search_query: Optional[str] = None,
    ) -> Clip:
        validate_time_range(start_time, end_time)

        episode = await get_episode(session, episode_id)
        if episode is None:
            raise NotFoundError(detail="Episode not found")

        try:
            audio_clip_url = await self.build_clip_url(episode, start_time, end_time)
        except (ClipError, StorageError) as e:
            logger.error(f"[CLIP] episode={episode_id} could not build clip: {e}")
            raise

        clip = await create_clip(
            session,
            episode_id=episode_id,
            start_time=start_time,
            end_time=end_time,
            transcript_text=transcript_text,
            search_query=search_query,
            audio_clip_url=audio_clip_url,
        )
        logger.info(f"[CLIP] created clip={clip.id} episode={episode_id} strategy={self.strategy}")
        return clip

import os
import subprocess
import tempfile
import unittest
import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from podsearch.core.database import Database
from podsearch.core.exceptions import ClipError, NotFoundError, ValidationError
from podsearch.repository import episode_repo, podcast_repo
from podsearch.services.clip_service import (
    ClipBuilder,
    STRATEGY_TRIM,
    cut_audio,
    fragment_url,
    validate_time_range,
)
from tests.helpers import FakeStorage

AUDIO_URL = "https://blob.test/podcast-audio/ep1.mp3"


class TestClipHelpers(unittest.TestCase):

    def test_fragment_url(self):
        self.assertEqual(fragment_url(AUDIO_URL, 12, 45.5), f"{AUDIO_URL}#t=12,45.5")

    def test_valid_range(self):
        validate_time_range(0, 0.5)

    def test_equal_start_and_end_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_time_range(10, 10)
        self.assertEqual(ctx.exception.status_code, 400)

    def test_reversed_range_rejected(self):
        with self.assertRaises(ValidationError):
            validate_time_range(20, 10)

    def test_negative_time_rejected(self):
        with self.assertRaises(ValidationError):
            validate_time_range(-1, 10)

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            ClipBuilder(FakeStorage(), "podcast-clips", strategy="reencode")

    @patch("podsearch.services.clip_service.subprocess.run")
    def test_cut_audio_command(self, mock_run):
        cut_audio("ffmpeg", "/tmp/in.mp3", "/tmp/out.mp3", 5, 12.5)

        cmd = mock_run.call_args[0][0]
        self.assertEqual(cmd[:4], ["ffmpeg", "-y", "-i", "/tmp/in.mp3"])
        self.assertIn("-ss", cmd)
        self.assertEqual(cmd[cmd.index("-ss") + 1], "5")
        self.assertEqual(cmd[cmd.index("-to") + 1], "12.5")
        self.assertEqual(cmd[-1], "/tmp/out.mp3")

    @patch("podsearch.services.clip_service.subprocess.run")
    def test_cut_audio_failure(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, "ffmpeg", stderr="Invalid data")

        with self.assertRaises(ClipError):
            cut_audio("ffmpeg", "/tmp/in.mp3", "/tmp/out.mp3", 0, 1)


class TestTrimAndUpload(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(prefix="test_clips_")
        self.storage = FakeStorage()
        self.builder = ClipBuilder(self.storage, "podcast-clips", strategy=STRATEGY_TRIM, scratch_dir=self.tmpdir)

    def test_trim_uploads_clip_and_cleans_up(self):
        def fake_cut(ffmpeg_bin, input_path, output_path, start_sec, end_sec):
            with open(output_path, "wb") as f:
                f.write(b"ID3clip")

        with patch("podsearch.services.clip_service.cut_audio", side_effect=fake_cut):
            url = self.builder.trim_and_upload(AUDIO_URL, 1, 4)

        self.assertTrue(url.startswith("https://blob.test/podcast-clips/"))
        self.assertTrue(url.endswith("-clip.mp3"))
        self.assertEqual(list(self.storage.uploads.values()), [b"ID3clip"])
        self.assertEqual(os.listdir(os.path.join(self.tmpdir, "temp")), [])

    def test_trim_failure_propagates(self):
        with patch("podsearch.services.clip_service.cut_audio", side_effect=ClipError("ffmpeg failed")):
            with self.assertRaises(ClipError):
                self.builder.trim_and_upload(AUDIO_URL, 1, 4)

        self.assertEqual(self.storage.uploads, {})


class TestClipBuilder(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.db = Database("sqlite+aiosqlite://")
        await self.db.create_database()
        async with self.db.session() as session:
            podcast = await podcast_repo.create_podcast(session, title="Weekly Tech")
            self.episode = await episode_repo.create_episode(
                session,
                podcast_id=podcast.id,
                title="Episode 1",
                audio_file_url=AUDIO_URL,
                publication_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )

    async def asyncTearDown(self):
        await self.db.dispose()

    async def test_fragment_clip_is_stored(self):
        builder = ClipBuilder(FakeStorage(), "podcast-clips")

        async with self.db.session() as session:
            clip = await builder.create_clip(
                session,
                self.episode.id,
                start_time=12,
                end_time=45,
                transcript_text="the part about databases",
                search_query="databases",
            )

        self.assertEqual(clip.audio_clip_url, f"{AUDIO_URL}#t=12,45")
        self.assertEqual(clip.search_query, "databases")
        self.assertEqual(clip.episode_id, self.episode.id)

    async def test_missing_episode(self):
        builder = ClipBuilder(FakeStorage(), "podcast-clips")

        async with self.db.session() as session:
            with self.assertRaises(NotFoundError):
                await builder.create_clip(session, uuid.uuid4(), start_time=0, end_time=5)

    async def test_trim_strategy_uses_uploaded_url(self):
        builder = ClipBuilder(FakeStorage(), "podcast-clips", strategy=STRATEGY_TRIM)
        builder.trim_and_upload = MagicMock(return_value="https://blob.test/podcast-clips/x-clip.mp3")

        async with self.db.session() as session:
            clip = await builder.create_clip(session, self.episode.id, start_time=3, end_time=9)

        builder.trim_and_upload.assert_called_once_with(AUDIO_URL, 3, 9)
        self.assertEqual(clip.audio_clip_url, "https://blob.test/podcast-clips/x-clip.mp3")


if __name__ == "__main__":
    unittest.main()

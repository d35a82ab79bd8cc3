import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from sqlalchemy import func, select

from podsearch.core.database import Database
from podsearch.core.exceptions import TranscriptionSubmitError, TranscriptionTimeoutError
from podsearch.models.orm import Episode, Segment, Transcript
from podsearch.models.status import TranscriptionStatus
from podsearch.repository import episode_repo, podcast_repo
from podsearch.services.orchestrator import TranscriptionOrchestrator
from podsearch.services.segmenter import SegmentDraft, Segmenter
from tests.helpers import FakeTranscriptionClient, completed_payload, failing_client, word


class OrchestratorTestCase(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.db = Database("sqlite+aiosqlite://")
        await self.db.create_database()
        async with self.db.session() as session:
            podcast = await podcast_repo.create_podcast(session, title="Weekly Tech")
            self.episode = await episode_repo.create_episode(
                session,
                podcast_id=podcast.id,
                title="Episode 1",
                audio_file_url="https://blob.test/podcast-audio/ep1.mp3",
                publication_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )

    async def asyncTearDown(self):
        await self.db.dispose()

    def orchestrator(self, client) -> TranscriptionOrchestrator:
        return TranscriptionOrchestrator(self.db, client, Segmenter(30), poll_interval=0, max_poll_attempts=3)

    async def episode_state(self) -> Episode:
        async with self.db.session() as session:
            return await session.get(Episode, self.episode.id)

    async def count(self, model) -> int:
        async with self.db.session() as session:
            return (await session.execute(select(func.count()).select_from(model))).scalar()


class TestTranscriptionOrchestrator(OrchestratorTestCase):

    async def test_completed_transcription_is_stored(self):
        words = [
            word("hello", 0, 1_000),
            word("and", 2_000, 3_000),
            word("goodbye", 35_000, 36_000),
        ]
        client = FakeTranscriptionClient(completed_payload(words, audio_duration_ms=36_200))

        result = await self.orchestrator(client).run(self.episode.id, self.episode.audio_file_url)

        self.assertTrue(result.success)
        self.assertEqual(result.segment_count, 2)
        self.assertEqual(client.submitted, [self.episode.audio_file_url])

        episode = await self.episode_state()
        self.assertEqual(episode.transcription_status, TranscriptionStatus.COMPLETED)
        self.assertEqual(episode.duration, 37)

        async with self.db.session() as session:
            segments = (await session.execute(
                select(Segment).where(Segment.episode_id == self.episode.id).order_by(Segment.start_time)
            )).scalars().all()
            transcript = (await session.execute(select(Transcript))).scalar_one()

        self.assertEqual([s.text for s in segments], ["hello and", "goodbye"])
        self.assertEqual((segments[0].start_time, segments[0].end_time), (0.0, 3.0))
        self.assertTrue(all(s.transcript_id == transcript.id for s in segments))
        self.assertEqual(transcript.raw_transcript["status"], "completed")

    async def test_status_passes_through_in_progress(self):
        seen = []
        client = FakeTranscriptionClient()
        original_submit = client.submit

        async def submit(audio_url):
            seen.append((await self.episode_state()).transcription_status)
            return await original_submit(audio_url)

        client.submit = submit
        await self.orchestrator(client).run(self.episode.id, self.episode.audio_file_url)

        self.assertEqual(seen, [TranscriptionStatus.IN_PROGRESS])

    async def test_provider_failure_marks_episode_failed(self):
        result = await self.orchestrator(failing_client()).run(self.episode.id, self.episode.audio_file_url)

        self.assertFalse(result.success)
        self.assertIn("Transcription failed", result.error)
        self.assertEqual((await self.episode_state()).transcription_status, TranscriptionStatus.FAILED)
        self.assertEqual(await self.count(Segment), 0)

    async def test_submit_failure_marks_episode_failed(self):
        client = FakeTranscriptionClient(error=TranscriptionSubmitError("Transcription request failed: 401"))

        result = await self.orchestrator(client).run(self.episode.id, self.episode.audio_file_url)

        self.assertFalse(result.success)
        self.assertEqual((await self.episode_state()).transcription_status, TranscriptionStatus.FAILED)

    async def test_timeout_marks_episode_failed(self):
        client = FakeTranscriptionClient(error=TranscriptionTimeoutError("Transcription timed out"))

        result = await self.orchestrator(client).run(self.episode.id, self.episode.audio_file_url)

        self.assertTrue(result.timed_out)
        self.assertEqual(result.error, "Transcription timed out")
        self.assertEqual((await self.episode_state()).transcription_status, TranscriptionStatus.FAILED)

    async def test_storage_failure_leaves_no_partial_rows(self):
        # a segment without text violates NOT NULL after the transcript row is flushed
        broken = Segmenter(30)
        broken.segment = lambda words: [SegmentDraft(0.0, 1.0, "ok"), SegmentDraft(1.0, 2.0, None)]
        orchestrator = TranscriptionOrchestrator(self.db, FakeTranscriptionClient(), broken, poll_interval=0)

        result = await orchestrator.run(self.episode.id, self.episode.audio_file_url)

        self.assertFalse(result.success)
        self.assertIn("Error saving transcript", result.error)
        self.assertEqual((await self.episode_state()).transcription_status, TranscriptionStatus.FAILED)
        self.assertEqual(await self.count(Transcript), 0)
        self.assertEqual(await self.count(Segment), 0)

    async def test_segmenting_error_marks_episode_failed(self):
        client = FakeTranscriptionClient()

        with patch.object(Segmenter, "segment", side_effect=KeyError("start")):
            result = await self.orchestrator(client).run(self.episode.id, self.episode.audio_file_url)

        self.assertFalse(result.success)
        self.assertEqual((await self.episode_state()).transcription_status, TranscriptionStatus.FAILED)

    async def test_rerun_replaces_previous_transcript(self):
        client = FakeTranscriptionClient()
        orchestrator = self.orchestrator(client)

        await orchestrator.run(self.episode.id, self.episode.audio_file_url)
        await orchestrator.run(self.episode.id, self.episode.audio_file_url)

        self.assertEqual(await self.count(Transcript), 1)
        self.assertEqual(await self.count(Segment), 1)


if __name__ == "__main__":
    unittest.main()

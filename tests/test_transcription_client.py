import unittest

import httpx

from podsearch.core.exceptions import (
    TranscriptionError,
    TranscriptionFailedError,
    TranscriptionSubmitError,
    TranscriptionTimeoutError,
)
from podsearch.services.transcription_client import AssemblyAIClient, TranscriptionResult
from tests.helpers import completed_payload, word


async def no_sleep(_seconds):
    return None


class TestAssemblyAIClient(unittest.IsolatedAsyncioTestCase):

    def make_client(self, handler) -> AssemblyAIClient:
        return AssemblyAIClient(
            api_key="key-123",
            base_url="https://assembly.test/",
            transport=httpx.MockTransport(handler),
        )

    async def test_submit_posts_audio_url(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = request.read()
            return httpx.Response(200, json={"id": "tr_1", "status": "queued"})

        job_id = await self.make_client(handler).submit("https://blob.test/a.mp3")

        self.assertEqual(job_id, "tr_1")
        self.assertEqual(seen["path"], "/v2/transcript")
        self.assertEqual(seen["auth"], "key-123")
        self.assertIn(b"https://blob.test/a.mp3", seen["body"])

    async def test_submit_rejected(self):
        def handler(request):
            return httpx.Response(401, json={"error": "Invalid API key"})

        with self.assertRaises(TranscriptionSubmitError):
            await self.make_client(handler).submit("https://blob.test/a.mp3")

    async def test_wait_returns_once_completed(self):
        statuses = iter(["queued", "processing", "completed"])
        payload = completed_payload([word("hi", 0, 300)], audio_duration_ms=300)

        def handler(request):
            status = next(statuses)
            body = dict(payload, status=status) if status == "completed" else {"id": "tr_123", "status": status}
            return httpx.Response(200, json=body)

        result = await self.make_client(handler).wait_for_completion(
            "tr_123", interval=0, max_attempts=5, sleep=no_sleep
        )

        self.assertTrue(result.is_completed)
        self.assertEqual(result.words[0]["text"], "hi")
        self.assertEqual(result.audio_duration, 300)

    async def test_provider_error_status_fails_immediately(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"id": "tr_1", "status": "error", "error": "bad audio"})

        with self.assertRaises(TranscriptionFailedError) as ctx:
            await self.make_client(handler).wait_for_completion(
                "tr_1", interval=0, max_attempts=5, sleep=no_sleep
            )

        self.assertIn("bad audio", str(ctx.exception))
        self.assertEqual(len(calls), 1)

    async def test_gives_up_after_max_attempts(self):
        calls = []
        sleeps = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"id": "tr_1", "status": "processing"})

        async def record_sleep(seconds):
            sleeps.append(seconds)

        with self.assertRaises(TranscriptionTimeoutError):
            await self.make_client(handler).wait_for_completion(
                "tr_1", interval=30, max_attempts=3, sleep=record_sleep
            )

        self.assertEqual(len(calls), 3)
        self.assertEqual(sleeps, [30, 30, 30])

    async def test_fetch_http_error(self):
        def handler(request):
            return httpx.Response(500, text="boom")

        with self.assertRaises(TranscriptionError):
            await self.make_client(handler).fetch("tr_1")


class TestTranscriptionResult(unittest.TestCase):

    def test_from_payload_defaults(self):
        result = TranscriptionResult.from_payload({"id": "x", "status": "completed", "words": None})

        self.assertEqual(result.words, [])
        self.assertIsNone(result.audio_duration)
        self.assertTrue(result.is_completed)
        self.assertFalse(result.is_error)


if __name__ == "__main__":
    unittest.main()

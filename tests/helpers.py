"""Shared fakes and wiring for the test suite."""
import unittest
import uuid
from typing import Any, Dict, List, Optional

from dependency_injector import providers
from fastapi.testclient import TestClient

from podsearch.core.config import TestConfigs
from podsearch.core.container import Container
from podsearch.core.exceptions import TranscriptionFailedError
from podsearch.services.transcription_client import TranscriptionResult


def word(text: str, start_ms: int, end_ms: int) -> Dict[str, Any]:
    return {"text": text, "start": start_ms, "end": end_ms, "confidence": 0.99}


def completed_payload(words: List[Dict[str, Any]], audio_duration_ms: Optional[float] = None) -> Dict[str, Any]:
    return {
        "id": "tr_123",
        "status": "completed",
        "text": " ".join(w["text"] for w in words),
        "words": words,
        "audio_duration": audio_duration_ms,
    }


class FakeStorage:
    """In-memory stand-in for the blob storage service."""

    def __init__(self):
        self.uploads: Dict[str, bytes] = {}
        self.deleted: List[str] = []

    def upload(self, container, blob_name, data, content_type=None) -> str:
        self.uploads[f"{container}/{blob_name}"] = data if isinstance(data, bytes) else data.read()
        return f"https://blob.test/{container}/{blob_name}"

    def delete(self, container, blob_name) -> bool:
        self.deleted.append(f"{container}/{blob_name}")
        return True

    def download(self, url, dest_path) -> str:
        return dest_path


class FakeTranscriptionClient:
    """Answers submit/wait with canned results instead of calling the provider."""

    def __init__(self, payload: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.payload = payload or completed_payload(
            [word("hello", 0, 500), word("world", 600, 1000)], audio_duration_ms=1500
        )
        self.error = error
        self.submitted: List[str] = []

    async def submit(self, audio_url: str) -> str:
        self.submitted.append(audio_url)
        return self.payload["id"]

    async def wait_for_completion(self, job_id, interval=30.0, max_attempts=20, sleep=None) -> TranscriptionResult:
        if self.error is not None:
            raise self.error
        return TranscriptionResult.from_payload(self.payload)


def failing_client(message: str = "audio could not be decoded") -> FakeTranscriptionClient:
    return FakeTranscriptionClient(error=TranscriptionFailedError(f"Transcription failed: {message}"))


def make_container(storage=None, transcription_client=None, **config_overrides) -> Container:
    container = Container()
    container.config.override(providers.Object(TestConfigs(**config_overrides)))
    container.storage.override(providers.Object(storage or FakeStorage()))
    container.transcription_client.override(
        providers.Object(transcription_client or FakeTranscriptionClient())
    )
    return container


class ApiTestCase(unittest.TestCase):
    """Boots the app against an in-memory sqlite database."""

    config_overrides: Dict[str, Any] = {}

    def setUp(self):
        from podsearch.main import create_app

        self.storage = FakeStorage()
        self.transcriber = self.make_transcriber()
        self.container = make_container(self.storage, self.transcriber, **self.config_overrides)
        self.client = TestClient(create_app(self.container))
        self.client.__enter__()
        self.call(self.container.db().create_database)

    def tearDown(self):
        self.client.__exit__(None, None, None)

    def make_transcriber(self):
        return FakeTranscriptionClient()

    def call(self, func, *args):
        """Run a coroutine function on the app's event loop."""
        return self.client.portal.call(func, *args)

    def session_call(self, func, *args, **kwargs):
        async def _run():
            async with self.container.db().session() as session:
                return await func(session, *args, **kwargs)

        return self.call(_run)

    def admin_headers(self, email: str = "admin@example.com", password: str = "s3cret-pass") -> Dict[str, str]:
        self.client.post("/api/auth/register", json={"email": email, "password": password})
        response = self.client.post("/api/auth/login", json={"email": email, "password": password})
        return {"Authorization": f"Bearer {response.json()['token']}"}


def new_id() -> str:
    return str(uuid.uuid4())

"""
Fakes for the upstream services used by the functions.
"""
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from pivot_mentor.functions.app import create_app
from pivot_mentor.functions.function_errors import UpstreamStatusError
from pivot_mentor.user.user_settings import UserSettings


class FakeGateway:
    """Records gateway calls and replays a scripted reply or failure status."""

    def __init__(self):
        self.model = "test/model"
        self.reply = "Looks promising."
        self.chunks: List[bytes] = [b'data: {"choices":[{"delta":{"content":"Hi"}}]}\n', b"data: [DONE]\n"]
        self.fail_status: int | None = None
        self.fail_error: Exception | None = None
        self.calls: List[List[Dict[str, str]]] = []

    def _check(self, messages):
        self.calls.append(messages)
        if self.fail_error is not None:
            raise self.fail_error

        if self.fail_status is not None:
            raise UpstreamStatusError("AI gateway", self.fail_status, "upstream body")

    async def complete(self, messages):
        self._check(messages)
        return self.reply

    async def stream(self, messages):
        self._check(messages)

        async def relay():
            for chunk in self.chunks:
                yield chunk

        return relay()


class FakeAssemblyAI:
    """Scripted AssemblyAI client."""

    def __init__(self):
        self.uploaded: List[bytes] = []
        self.statuses: List[Dict[str, Any]] = [
            {"status": "queued"},
            {"status": "processing"},
            {"status": "completed", "text": "We should pivot to B2B."}
        ]
        self.polls = 0

    async def upload(self, audio):
        self.uploaded.append(audio)
        return "https://cdn.example/upload/1"

    async def request_transcript(self, audio_url, language_code="en"):
        return "transcript-1"

    async def get_transcript(self, transcript_id):
        status = self.statuses[min(self.polls, len(self.statuses) - 1)]
        self.polls += 1
        return status


class FakeCalendar:
    """Records inserted events and returns a created event resource."""

    def __init__(self):
        self.inserted: List[Dict[str, Any]] = []

    async def insert_event(self, access_token, calendar_id, event):
        self.inserted.append({"access_token": access_token, "calendar_id": calendar_id, "event": event})
        return {
            "id": "evt-1",
            "htmlLink": "https://calendar.example/evt-1",
            "conferenceData": {"entryPoints": [{"entryPointType": "video", "uri": "https://meet.example/abc"}]}
        }


class FakeUpstreamContent:
    """Body reader handing out pre-split chunks."""

    def __init__(self, chunks: List[bytes]):
        self._chunks = chunks

    async def iter_any(self):
        for chunk in self._chunks:
            yield chunk


class FakeUpstreamResponse:
    """Minimal aiohttp client response."""

    def __init__(self, status: int = 200, json_data: Any = None, text: str = "", chunks: List[bytes] | None = None):
        self.status = status
        self._json_data = json_data
        self._text = text
        self.content = FakeUpstreamContent(chunks or [])
        self.released = False

    async def text(self) -> str:
        return self._text

    async def json(self, content_type: str | None = "application/json") -> Any:
        return self._json_data

    def release(self) -> None:
        self.released = True


class FakeUpstreamRequest:
    """Awaitable, context-managed request, like the object aiohttp returns from `post()`."""

    def __init__(self, response: FakeUpstreamResponse):
        self._response = response

    def __await__(self):
        return self._get().__await__()

    async def _get(self) -> FakeUpstreamResponse:
        return self._response

    async def __aenter__(self) -> FakeUpstreamResponse:
        return self._response

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._response.release()


class FakeUpstreamSession:
    """Minimal aiohttp session replaying one response per request, in order."""

    def __init__(self, *responses: FakeUpstreamResponse):
        self._responses = list(responses)
        self.requests: List[Dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> FakeUpstreamRequest:
        self.requests.append({"method": method, "url": url, **kwargs})
        return FakeUpstreamRequest(self._responses.pop(0))

    def post(self, url: str, **kwargs: Any) -> FakeUpstreamRequest:
        return self.request("POST", url, **kwargs)

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "FakeUpstreamSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


@pytest.fixture
def fake_gateway():
    """Fixture providing a fake AI gateway."""
    return FakeGateway()


@pytest.fixture
def fake_assemblyai():
    """Fixture providing a fake AssemblyAI client."""
    return FakeAssemblyAI()


@pytest.fixture
def fake_calendar():
    """Fixture providing a fake calendar client."""
    return FakeCalendar()


@pytest.fixture
def client(fake_gateway, fake_assemblyai, fake_calendar):
    """Fixture providing a test client for the functions app with every upstream faked."""
    app = create_app(
        UserSettings.create_default(),
        gateway=fake_gateway,
        assemblyai=fake_assemblyai,
        calendar=fake_calendar,
        transcription_poll_interval=0
    )
    return TestClient(app)


@pytest.fixture
def with_session():
    """Fixture providing a helper that points a service client at a fake upstream session."""
    def attach(service_client, *responses: FakeUpstreamResponse) -> FakeUpstreamSession:
        session = FakeUpstreamSession(*responses)
        service_client._create_session = lambda: session
        return session

    return attach


@pytest.fixture
def upstream_response():
    """Fixture providing the fake upstream response class."""
    return FakeUpstreamResponse

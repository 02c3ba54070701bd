"""
Tests for the upstream service clients against a fake HTTP session.
"""
import asyncio

import pytest
from fastapi.testclient import TestClient

from ai.ai_backend_settings import AIBackendSettings
from pivot_mentor.functions.app import create_app
from pivot_mentor.functions.calendar_event import GoogleCalendarClient
from pivot_mentor.functions.function_errors import FunctionError, UpstreamStatusError
from pivot_mentor.functions.gateway_client import GatewayClient
from pivot_mentor.functions.transcription import AssemblyAIClient, TranscriptionFunction
from pivot_mentor.user.user_settings import UserSettings


@pytest.fixture
def gateway():
    """Fixture providing a gateway client with a configured key."""
    return GatewayClient(AIBackendSettings(enabled=True, api_key="gw-key"), "test/model")


@pytest.fixture
def assemblyai():
    """Fixture providing an AssemblyAI client with a configured key."""
    return AssemblyAIClient(AIBackendSettings(enabled=True, api_key="aai-key"))


def drain(stream):
    """Read a gateway stream to the end."""
    async def run():
        return [chunk async for chunk in stream]

    return asyncio.run(run())


class TestGatewayComplete:
    """Test non-streaming completions."""

    def test_returns_first_choice(self, gateway, with_session, upstream_response):
        """Test that the first choice's content is returned and the request is well formed."""
        session = with_session(
            gateway,
            upstream_response(json_data={"choices": [{"message": {"content": "Focus on retention."}}]})
        )
        messages = [{"role": "user", "content": "Hi"}]

        assert asyncio.run(gateway.complete(messages)) == "Focus on retention."

        request = session.requests[0]
        assert request["url"] == GatewayClient.DEFAULT_URL
        assert request["headers"]["Authorization"] == "Bearer gw-key"
        assert request["json"] == {"model": "test/model", "messages": messages}
        assert session.closed is True

    def test_failure_status(self, gateway, with_session, upstream_response):
        """Test that a failure status raises with the upstream status and body."""
        with_session(gateway, upstream_response(status=429, text="too many"))

        with pytest.raises(UpstreamStatusError) as exc_info:
            asyncio.run(gateway.complete([]))

        assert exc_info.value.upstream_status == 429
        assert exc_info.value.body == "too many"


class TestGatewayStream:
    """Test streaming completions."""

    def test_failure_status_before_streaming(self, gateway, with_session, upstream_response):
        """Test that a failure status is raised up front and the connection released."""
        response = upstream_response(status=402, text="pay up")
        session = with_session(gateway, response)

        with pytest.raises(UpstreamStatusError) as exc_info:
            asyncio.run(gateway.stream([]))

        assert exc_info.value.upstream_status == 402
        assert response.released is True
        assert session.closed is True

    def test_relay_closes_session_when_exhausted(self, gateway, with_session, upstream_response):
        """Test that reading the stream to the end releases the connection."""
        response = upstream_response(chunks=[b"data: a\n", b"data: [DONE]\n"])
        session = with_session(gateway, response)

        stream = asyncio.run(gateway.stream([{"role": "user", "content": "Hi"}]))

        assert session.closed is False
        assert session.requests[0]["json"]["stream"] is True
        assert drain(stream) == [b"data: a\n", b"data: [DONE]\n"]
        assert stream.closed is True
        assert response.released is True
        assert session.closed is True

    def test_close_without_reading(self, gateway, with_session, upstream_response):
        """Test that a stream that is never read can still release its connection."""
        session = with_session(gateway, upstream_response(chunks=[b"data: a\n"]))

        async def run():
            stream = await gateway.stream([])
            await stream.aclose()
            await stream.aclose()
            return stream

        stream = asyncio.run(run())

        assert stream.closed is True
        assert session.closed is True

    def test_mentor_chat_route_releases_connection(self, gateway, assemblyai, with_session, upstream_response):
        """Test the mentor chat route end to end with the real gateway client."""
        chunks = [b'data: {"choices":[{"delta":{"content":"Hi"}}]}\n', b"data: [DONE]\n"]
        session = with_session(gateway, upstream_response(chunks=chunks))
        app = create_app(UserSettings.create_default(), gateway=gateway, assemblyai=assemblyai)

        response = TestClient(app).post("/functions/v1/mentor-chat", json={"messages": []})

        assert response.status_code == 200
        assert response.content == b"".join(chunks)
        assert session.closed is True


class TestAssemblyAIClient:
    """Test the AssemblyAI calls."""

    def test_transcription_flow(self, assemblyai, with_session, upstream_response):
        """Test upload, transcript request and polling against the API paths."""
        session = with_session(
            assemblyai,
            upstream_response(json_data={"upload_url": "https://cdn.example/a"}),
            upstream_response(json_data={"id": "t-1"}),
            upstream_response(json_data={"status": "completed", "text": "Hello"})
        )
        function = TranscriptionFunction(assemblyai, poll_interval=0)

        assert asyncio.run(function.transcribe("AAAA")) == "Hello"

        assert [(r["method"], r["url"]) for r in session.requests] == [
            ("POST", "https://api.assemblyai.com/v2/upload"),
            ("POST", "https://api.assemblyai.com/v2/transcript"),
            ("GET", "https://api.assemblyai.com/v2/transcript/t-1")
        ]
        assert session.requests[0]["headers"]["authorization"] == "aai-key"
        assert session.requests[0]["data"] == b"\x00\x00\x00"
        assert session.requests[1]["json"] == {"audio_url": "https://cdn.example/a", "language_code": "en"}

    @pytest.mark.parametrize("method_name,args,message", [
        ("upload", (b"audio",), "Failed to upload audio"),
        ("request_transcript", ("https://cdn.example/a",), "Failed to request transcription"),
        ("get_transcript", ("t-1",), "Failed to check transcription status"),
    ])
    def test_failure_status(self, assemblyai, with_session, upstream_response, method_name, args, message):
        """Test that each call reports its own failure message."""
        with_session(assemblyai, upstream_response(status=401, text="bad key"))

        with pytest.raises(FunctionError) as exc_info:
            asyncio.run(getattr(assemblyai, method_name)(*args))

        assert exc_info.value.message == message
        assert exc_info.value.status == 500


class TestGoogleCalendarClient:
    """Test Google Calendar event insertion."""

    def test_insert_event(self, with_session, upstream_response):
        """Test the request URL, parameters and authorization."""
        client = GoogleCalendarClient()
        session = with_session(client, upstream_response(json_data={"id": "evt-1"}))

        created = asyncio.run(client.insert_event("ya29.token", "team@example.com", {"summary": "s"}))

        assert created == {"id": "evt-1"}
        request = session.requests[0]
        assert request["url"] == "https://www.googleapis.com/calendar/v3/calendars/team@example.com/events"
        assert request["params"] == {"conferenceDataVersion": "1"}
        assert request["headers"]["Authorization"] == "Bearer ya29.token"

    def test_failure_status(self, with_session, upstream_response):
        """Test that an API rejection carries the API's error text."""
        client = GoogleCalendarClient()
        with_session(client, upstream_response(status=403, text="insufficient scope"))

        with pytest.raises(FunctionError) as exc_info:
            asyncio.run(client.insert_event("token", "primary", {}))

        assert exc_info.value.message == "Google Calendar API error: insufficient scope"

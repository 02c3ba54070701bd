"""
Shared fixtures and fakes for AI streaming tests.
"""
import json
from typing import Any, Dict, List

import pytest

from ai.mentor_chat.mentor_chat_backend import MentorChatBackend


class FakeContent:
    """Stands in for aiohttp's StreamReader, handing out pre-split chunks."""

    def __init__(self, chunks: List[bytes], error: BaseException | None = None):
        self._chunks = chunks
        self._error = error
        self.chunks_read = 0

    async def iter_any(self):
        for chunk in self._chunks:
            self.chunks_read += 1
            yield chunk

        if self._error is not None:
            raise self._error


class FakeResponse:
    """Minimal aiohttp response usable as an async context manager."""

    def __init__(self, status: int, chunks: List[bytes] | None = None, body: str = "", error: BaseException | None = None):
        self.status = status
        self.content = FakeContent(chunks or [], error)
        self._body = body
        self.closed = False

    async def text(self) -> str:
        return self._body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True


class FakeSession:
    """Minimal aiohttp session that records the request it was given."""

    def __init__(self, response: FakeResponse):
        self._response = response
        self.requests: List[Dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"url": url, **kwargs})
        return self._response

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None


class FakeSessionBackend(MentorChatBackend):
    """Mentor chat backend that talks to a FakeSession instead of the network."""

    def __init__(self, response: FakeResponse):
        super().__init__(api_key="test-key", api_url="http://functions.test/mentor-chat")
        self.response = response
        self.session = FakeSession(response)

    def _create_session(self):
        return self.session


def sse_line(content: str | None = None, **delta: Any) -> str:
    """Build one `data:` line carrying a chat completion delta."""
    if content is not None:
        delta["content"] = content

    return f"data: {json.dumps({'choices': [{'delta': delta}]}, ensure_ascii=False)}\n"


@pytest.fixture
def make_backend():
    """Fixture providing a factory for backends that replay a scripted response."""
    def factory(status: int = 200, chunks: List[bytes] | None = None, body: str = "", error: BaseException | None = None):
        return FakeSessionBackend(FakeResponse(status, chunks, body, error))

    return factory


@pytest.fixture
def hello_stream() -> bytes:
    """Fixture providing a well-formed stream that spells out a short reply."""
    text = (
        ": keep-alive\n"
        + sse_line(role="assistant")
        + sse_line("Hel")
        + "\r\n"
        + sse_line("lo, ")
        + sse_line("fundér 🚀")
        + "data: [DONE]\n"
    )
    return text.encode("utf-8")


@pytest.fixture
def make_sse_line():
    """Fixture providing the `data:` line builder."""
    return sse_line

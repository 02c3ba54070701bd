"""Client for the OpenAI-compatible AI gateway."""

from typing import AsyncIterator, Dict, List

import aiohttp

from ai.ai_backend_settings import AIBackendSettings
from pivot_mentor.functions.function_errors import ConfigurationError, UpstreamStatusError
from pivot_mentor.functions.service_client import ServiceClient


class GatewayClient(ServiceClient):
    """Sends chat completion requests to the AI gateway."""

    DEFAULT_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
    API_KEY_NAME = "LOVABLE_API_KEY"

    def __init__(self, settings: AIBackendSettings, model: str) -> None:
        """
        Initialize the gateway client.

        Args:
            settings: Gateway settings (API key and optional URL override)
            model: Model name sent with every request
        """
        super().__init__()
        self._api_key = settings.api_key
        self._url = settings.url or self.DEFAULT_URL
        self._model = model

    @property
    def model(self) -> str:
        """Get the model requests are sent to."""
        return self._model

    def _headers(self) -> Dict[str, str]:
        if not self._api_key:
            raise ConfigurationError(self.API_KEY_NAME)

        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json"
        }

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """
        Request a complete (non-streaming) chat completion.

        Args:
            messages: Messages including any system prompt

        Returns:
            Content of the first choice

        Raises:
            ConfigurationError: If no API key is configured
            UpstreamStatusError: If the gateway answers with a failure status
        """
        headers = self._headers()

        async with self._create_session() as session:
            async with session.post(
                self._url,
                headers=headers,
                json={"model": self._model, "messages": messages}
            ) as response:
                if not 200 <= response.status < 300:
                    error_text = await response.text()
                    self._logger.error("AI gateway error: %d %s", response.status, error_text)
                    raise UpstreamStatusError("AI gateway", response.status, error_text)

                data = await response.json(content_type=None)

        return data["choices"][0]["message"]["content"]

    async def stream(self, messages: List[Dict[str, str]]) -> "GatewayStream":
        """
        Open a streaming chat completion.

        The status is checked before this returns, so failures surface as exceptions rather than
        as a broken stream.  The returned stream owns the connection and closes it when it is
        exhausted or explicitly closed.

        Args:
            messages: Messages including any system prompt

        Returns:
            Stream over the raw response body

        Raises:
            ConfigurationError: If no API key is configured
            UpstreamStatusError: If the gateway answers with a failure status
        """
        headers = self._headers()
        session = self._create_session()

        try:
            response = await session.post(
                self._url,
                headers=headers,
                json={"model": self._model, "messages": messages, "stream": True}
            )

        except BaseException:
            await session.close()
            raise

        if not 200 <= response.status < 300:
            error_text = await response.text()
            response.release()
            await session.close()
            self._logger.error("AI gateway error: %d %s", response.status, error_text)
            raise UpstreamStatusError("AI gateway", response.status, error_text)

        return GatewayStream(session, response)


class GatewayStream:
    """
    Raw body of a streaming gateway response.

    Iterating relays the body chunk by chunk.  The connection is released when iteration ends or
    when `aclose()` is called, so a stream that is never iterated can still be released.
    """

    def __init__(self, session: aiohttp.ClientSession, response: aiohttp.ClientResponse) -> None:
        self._session = session
        self._response = response
        self._closed = False

    @property
    def closed(self) -> bool:
        """True once the connection has been released."""
        return self._closed

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._relay()

    async def _relay(self) -> AsyncIterator[bytes]:
        try:
            async for data in self._response.content.iter_any():
                yield data

        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Release the response and close the session."""
        if self._closed:
            return

        self._closed = True
        self._response.release()
        await self._session.close()

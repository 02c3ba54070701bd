"""Base class for AI backends."""

from abc import ABC, abstractmethod
import asyncio
from dataclasses import dataclass
import json
import logging
import os
import ssl
import sys
from typing import Any, AsyncGenerator, Dict, List, Tuple

import aiohttp
from aiohttp import ClientError
import certifi

from ai.ai_exceptions import AIStreamError
from ai.ai_response import AIError, AIResponse, AIStreamOutcome
from ai.ai_stream_decoder import AIStreamDecoder, AIStreamPayload
from ai.ai_stream_response import AIStreamResponse


@dataclass
class RequestConfig:
    """Complete configuration for an API request."""
    url: str
    headers: Dict[str, str]
    data: Dict[str, Any]


class AIBackend(ABC):
    """
    Abstract base class for AI backends.

    A backend sends a snapshot of the conversation and turns the streamed reply into a series of
    `AIResponse` updates.  It never raises out of `stream_message()`: every failure is reported as
    a final update carrying an `AIError`.  Requests are never retried.
    """

    GENERIC_ERROR_MESSAGE = "Failed to send message. Please try again."

    # Statuses whose JSON body carries a user-facing `error` message
    _QUOTA_STATUS_OUTCOMES = {
        429: AIStreamOutcome.RATE_LIMITED,
        402: AIStreamOutcome.PAYMENT_REQUIRED
    }

    @classmethod
    def get_default_url(cls) -> str:
        """
        Get the default API URL for this backend.

        Returns:
            The default URL for this backend.
        """
        return ""

    def __init__(self, api_key: str, api_url: str | None) -> None:
        """Initialize common attributes."""
        self._api_key = api_key
        self._api_url = api_url or self.get_default_url()
        self._logger = logging.getLogger(self.__class__.__name__)

        if getattr(sys, "frozen", False) and hasattr(sys, '_MEIPASS'):
            cert_path = os.path.join(sys._MEIPASS, "certifi", "cacert.pem")

        else:
            cert_path = certifi.where()

        self._ssl_context = ssl.create_default_context(cafile=cert_path)

    @abstractmethod
    def _build_request_config(self, messages: List[Dict[str, str]]) -> RequestConfig:
        """
        Build complete request configuration for this backend.

        Args:
            messages: Conversation snapshot as `{role, content}` dictionaries

        Returns:
            RequestConfig containing URL, headers, and request data
        """

    def _create_stream_response_handler(self) -> AIStreamResponse:
        """Create the accumulator used for one streamed reply."""
        return AIStreamResponse()

    def _create_session(self) -> aiohttp.ClientSession:
        """Create the HTTP session used for one request."""
        return aiohttp.ClientSession(connector=aiohttp.TCPConnector(ssl=self._ssl_context))

    async def _read_error_message(self, response: aiohttp.ClientResponse) -> Tuple[str | None, Dict]:
        """
        Read the `{error: string}` body returned alongside a failure status.

        Args:
            response: The failed response

        Returns:
            Tuple of the error message (None if the body has none) and the parsed body
        """
        response_message = await response.text()

        try:
            error_data = json.loads(response_message)

        except json.JSONDecodeError as e:
            self._logger.warning("Unable to parse: %s (%s)", response_message, str(e))
            return None, {}

        if not isinstance(error_data, dict):
            return None, {}

        error_msg = error_data.get("error")
        if isinstance(error_msg, dict):
            error_msg = error_msg.get("message")

        if not isinstance(error_msg, str):
            return None, error_data

        return error_msg, error_data

    def _apply_payloads(self, handler: AIStreamResponse, payloads: List[AIStreamPayload]) -> List[AIResponse]:
        """
        Apply decoded payloads to the accumulator and build the updates to publish.

        Args:
            handler: Accumulator for this reply
            payloads: Payloads in stream order

        Returns:
            One update per applied fragment; if the stream carried an error the last update holds it
        """
        updates: List[AIResponse] = []
        for payload in payloads:
            fragment = handler.update_from_payload(payload)
            if handler.error:
                updates.append(AIResponse(content=handler.content, error=handler.error))
                break

            if fragment:
                updates.append(AIResponse(content=handler.content, fragment=fragment))

        return updates

    async def stream_message(self, messages: List[Dict[str, str]]) -> AsyncGenerator[AIResponse, None]:
        """
        Send a conversation snapshot to the backend and stream the reply.

        The first update after a successful status has `connected` set.  Every applied fragment
        produces an update whose `content` is the full text so far.  The final update either has
        `completed` set or carries an error.

        Args:
            messages: Conversation snapshot as `{role, content}` dictionaries

        Yields:
            AIResponse updates in stream order
        """
        config = self._build_request_config(messages)

        post_timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=20,
            sock_read=120
        )

        handler = self._create_stream_response_handler()

        try:
            async with self._create_session() as session:
                async with session.post(
                    config.url,
                    headers=config.headers,
                    json=config.data,
                    timeout=post_timeout
                ) as response:
                    outcome = self._QUOTA_STATUS_OUTCOMES.get(response.status)
                    if outcome is not None:
                        error_msg, error_data = await self._read_error_message(response)
                        self._logger.debug("API error: %d: %s", response.status, error_data)
                        yield AIResponse(
                            content="",
                            error=AIError(
                                code=str(response.status),
                                message=error_msg if error_msg is not None else self.GENERIC_ERROR_MESSAGE,
                                outcome=outcome,
                                details=error_data
                            )
                        )
                        return

                    if not 200 <= response.status < 300:
                        response_message = await response.text()
                        self._logger.warning("API error %d: %s", response.status, response_message)
                        yield AIResponse(
                            content="",
                            error=AIError(
                                code=str(response.status),
                                message=self.GENERIC_ERROR_MESSAGE,
                                details={"status": response.status, "body": response_message}
                            )
                        )
                        return

                    yield AIResponse(content="", connected=True)

                    decoder = AIStreamDecoder()
                    async for data in response.content.iter_any():
                        for update in self._apply_payloads(handler, decoder.feed(data)):
                            yield update
                            if update.error:
                                return

                        # Stop reading as soon as the sentinel arrives; closing the response releases it
                        if decoder.done:
                            break

                    for update in self._apply_payloads(handler, decoder.finish()):
                        yield update
                        if update.error:
                            return

                    yield AIResponse(content=handler.content, completed=True)

        except AIStreamError as e:
            self._logger.warning("Unrecoverable stream error: %s", str(e))
            yield AIResponse(
                content=handler.content,
                error=AIError(
                    code="stream_error",
                    message=self.GENERIC_ERROR_MESSAGE,
                    details={"type": type(e).__name__, "reason": str(e)}
                )
            )

        except (ClientError, asyncio.TimeoutError) as e:
            self._logger.warning("Network error: %s", str(e))
            yield AIResponse(
                content=handler.content,
                error=AIError(
                    code="network_error",
                    message=self.GENERIC_ERROR_MESSAGE,
                    details={"type": type(e).__name__, "reason": str(e)}
                )
            )

        except Exception as e:
            self._logger.exception("Error processing AI response: %s", str(e))
            yield AIResponse(
                content=handler.content,
                error=AIError(
                    code="error",
                    message=self.GENERIC_ERROR_MESSAGE,
                    details={"type": type(e).__name__, "reason": str(e)}
                )
            )

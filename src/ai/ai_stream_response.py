"""Accumulates the text of a streaming response."""

import logging
from typing import Any

from ai.ai_response import AIError
from ai.ai_stream_decoder import AIStreamPayload


class AIStreamResponse:
    """
    Builds up the assistant reply from decoded stream payloads.

    Fragments are appended strictly in the order they are applied, so `content` is always the
    concatenation of every fragment seen so far.
    """

    def __init__(self) -> None:
        """Initialize stream response handler with default values."""
        self.content = ""
        self.error: AIError | None = None
        self._logger = logging.getLogger(self.__class__.__name__)

    def update_from_payload(self, payload: AIStreamPayload) -> str | None:
        """
        Apply one decoded payload.

        Args:
            payload: Payload decoded from the stream

        Returns:
            The fragment that was appended, or None if the payload carried no text
        """
        if payload.error is not None:
            self._handle_error(payload.error)
            return None

        if not payload.fragment:
            return None

        self.content += payload.fragment
        return payload.fragment

    def _handle_error(self, error_data: Any) -> None:
        """
        Handle an error record embedded in the stream.

        Args:
            error_data: Error information from the API
        """
        self._logger.debug("Got error message: %s", error_data)

        error_message = "Unknown error"
        if isinstance(error_data, str):
            error_message = error_data

        elif isinstance(error_data, dict) and "message" in error_data:
            error_message = error_data["message"]

        self.error = AIError(
            code="stream_error",
            message=error_message,
            details=error_data if isinstance(error_data, dict) else {"error": error_data}
        )

"""Mentor chat function backend implementation."""

from typing import Dict, List

from ai.ai_backend import AIBackend, RequestConfig


class MentorChatBackend(AIBackend):
    """Streams replies from the mentor-chat function."""

    @classmethod
    def get_default_url(cls) -> str:
        """
        Get the default API URL.

        Returns:
            The default URL
        """
        return "http://127.0.0.1:8000/functions/v1/mentor-chat"

    def _build_request_config(self, messages: List[Dict[str, str]]) -> RequestConfig:
        """Build complete request configuration for the mentor-chat function."""
        self._logger.debug("stream message with %d messages", len(messages))

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}"
        }

        return RequestConfig(
            url=self._api_url,
            headers=headers,
            data={"messages": messages}
        )

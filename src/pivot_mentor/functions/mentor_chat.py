"""Mentor chat function: proxies a streaming completion from the AI gateway."""

import logging
from typing import Dict, List

from pivot_mentor.functions.function_errors import FunctionError, UpstreamStatusError
from pivot_mentor.functions.gateway_client import GatewayClient, GatewayStream
from pivot_mentor.functions.prompts import MENTOR_SYSTEM_PROMPT


class MentorChatFunction:
    """
    Prepends the mentor persona to a conversation and relays the gateway's event stream.

    The stream body is passed through byte-for-byte; decoding happens in the client.
    """

    RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a moment."
    PAYMENT_REQUIRED_MESSAGE = "AI usage limit reached. Please contact support."
    SERVICE_ERROR_MESSAGE = "AI service error. Please try again."

    def __init__(self, gateway: GatewayClient) -> None:
        self._gateway = gateway
        self._logger = logging.getLogger("MentorChatFunction")

    async def stream(self, messages: List[Dict[str, str]]) -> GatewayStream:
        """
        Start a mentor reply.

        Args:
            messages: Conversation so far as `{role, content}` dictionaries

        Returns:
            The upstream event stream

        Raises:
            FunctionError: With status 429 or 402 for quota errors, 500 for anything else upstream
        """
        request_messages = [{"role": "system", "content": MENTOR_SYSTEM_PROMPT}, *messages]

        try:
            return await self._gateway.stream(request_messages)

        except UpstreamStatusError as e:
            if e.upstream_status == 429:
                raise FunctionError(self.RATE_LIMIT_MESSAGE, 429) from e

            if e.upstream_status == 402:
                raise FunctionError(self.PAYMENT_REQUIRED_MESSAGE, 402) from e

            self._logger.error("AI gateway error: %d %s", e.upstream_status, e.body)
            raise FunctionError(self.SERVICE_ERROR_MESSAGE, 500) from e

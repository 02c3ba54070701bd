"""Interactive terminal front-end for the mentor chat."""

import asyncio
import json
import logging
import os
import sys
from typing import Callable, TextIO

from ai.ai_conversation import AIConversation, AIConversationEvent
from ai.ai_message import AIMessage
from ai.ai_response import AIError, AIStreamOutcome


WELCOME_MESSAGE = (
    "Hey there, future founder! 👋 I'm your personal startup mentor. I'm here to guide you through "
    "every step of your journey - from that first spark of an idea all the way to funding and beyond!"
    "\n\nWhere are you in your startup journey right now?"
)

QUIT_COMMANDS = {"/quit", "/exit"}


class TerminalChat:
    """
    Renders an AIConversation to a text stream and feeds it lines typed by the user.

    Streaming messages arrive as the full text so far; only the part not yet written is printed.
    """

    def __init__(
        self,
        conversation: AIConversation,
        output: TextIO | None = None,
        read_line: Callable[[str], str] = input
    ) -> None:
        self._conversation = conversation
        self._output = output if output is not None else sys.stdout
        self._read_line = read_line
        self._printed_length = 0
        self._logger = logging.getLogger("TerminalChat")

        conversation.register_callback(AIConversationEvent.MESSAGE_ADDED, self._on_message_added)
        conversation.register_callback(AIConversationEvent.MESSAGE_UPDATED, self._on_message_updated)
        conversation.register_callback(AIConversationEvent.MESSAGE_COMPLETED, self._on_message_completed)
        conversation.register_callback(AIConversationEvent.ERROR, self._on_error)

    def _write(self, text: str) -> None:
        self._output.write(text)
        self._output.flush()

    async def _on_message_added(self, message: AIMessage) -> None:
        if message.role == "assistant":
            self._printed_length = 0
            self._write("mentor> ")

    async def _on_message_updated(self, message: AIMessage) -> None:
        self._write(message.content[self._printed_length:])
        self._printed_length = len(message.content)

    async def _on_message_completed(self, message: AIMessage) -> None:
        self._write(message.content[self._printed_length:] + "\n")
        self._printed_length = 0

    async def _on_error(self, error: AIError) -> None:
        if error.outcome in (AIStreamOutcome.RATE_LIMITED, AIStreamOutcome.PAYMENT_REQUIRED):
            self._write(f"[Service Unavailable] {error.message}\n")
            return

        self._write(f"[Error] {error.message}\n")

    def show_history(self) -> None:
        """Print every message already in the conversation."""
        for message in self._conversation.get_conversation_history().get_messages():
            prefix = "mentor> " if message.role == "assistant" else "you> "
            self._write(f"{prefix}{message.content}\n")

    async def run(self) -> None:
        """Read and submit lines until the user quits or input ends."""
        self.show_history()

        while True:
            try:
                line = await asyncio.to_thread(self._read_line, "you> ")

            except EOFError:
                break

            if line.strip() in QUIT_COMMANDS:
                break

            if not await self._conversation.submit_message(line):
                continue

            try:
                await self._conversation.wait_for_tasks()

            except asyncio.CancelledError:
                self._conversation.cancel_current_tasks()
                raise


def load_transcript(path: str) -> list[AIMessage]:
    """
    Load messages saved by `save_transcript()`.

    Args:
        path: Transcript file

    Returns:
        The saved messages, or an empty list if the file does not exist

    Raises:
        ValueError: If the file holds invalid messages
        json.JSONDecodeError: If the file is not JSON
    """
    if not os.path.exists(path):
        return []

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    return [AIMessage.from_transcript_dict(entry) for entry in data.get("conversation", [])]


def save_transcript(path: str, messages: list[AIMessage]) -> None:
    """
    Save messages to a transcript file.

    Args:
        path: Transcript file
        messages: Messages to save, in conversation order
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        json.dump({"conversation": [message.to_transcript_dict() for message in messages]}, f, indent=4)

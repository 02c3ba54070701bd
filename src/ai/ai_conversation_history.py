"""AI conversation state management."""

from typing import Dict, List

from ai.ai_message import AIMessage


class AIConversationHistory:
    """Manages the ordered conversation history."""

    def __init__(self) -> None:
        """Initialize empty conversation history."""
        self._messages: List[AIMessage] = []

    def clear(self) -> None:
        """Clear the conversation history."""
        self._messages.clear()

    def add_message(self, message: AIMessage) -> None:
        """Add a message to the end of the history."""
        self._messages.append(message)

    def update_message(
        self,
        message_id: str,
        content: str,
        completed: bool | None = None
    ) -> AIMessage | None:
        """Update an existing message and return the updated message."""
        for message in self._messages:
            if message.id == message_id:
                message.content = content
                if completed is not None:
                    message.completed = completed

                return message

        return None

    def get_messages(self) -> List[AIMessage]:
        """
        Get a copy of all messages in the conversation history.

        Returns:
            List[AIMessage]: Copy of all messages
        """
        return self._messages.copy()

    def get_last_message(self) -> AIMessage | None:
        """Get the most recent message, if any."""
        if not self._messages:
            return None

        return self._messages[-1]

    def to_request_messages(self) -> List[Dict[str, str]]:
        """
        Snapshot the history in the wire format sent to the chat endpoint.

        Returns:
            List of `{role, content}` dictionaries in conversation order
        """
        return [message.to_request_dict() for message in self._messages]

    def __len__(self) -> int:
        return len(self._messages)

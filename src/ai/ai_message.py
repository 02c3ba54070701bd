"""Conversation message support."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict
import uuid

from ai.ai_message_source import AIMessageSource


@dataclass
class AIMessage:
    """
    Represents a single message in the conversation.

    Messages are mutable only while an assistant reply is streaming into them.  Once `completed`
    is set the content is final.
    """
    id: str
    source: AIMessageSource
    content: str
    timestamp: datetime
    completed: bool = True

    # Map between AIMessageSource enum and transcript type strings
    _SOURCE_TYPE_MAP = {
        AIMessageSource.USER: "user_message",
        AIMessageSource.AI: "ai_response"
    }
    _TYPE_SOURCE_MAP = {v: k for k, v in _SOURCE_TYPE_MAP.items()}

    @classmethod
    def create(
        cls,
        source: AIMessageSource,
        content: str,
        completed: bool = True,
        timestamp: datetime | None = None
    ) -> 'AIMessage':
        """Create a new message with generated ID and current timestamp."""
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)

        return cls(
            id=str(uuid.uuid4()),
            source=source,
            content=content,
            timestamp=timestamp,
            completed=completed
        )

    def copy(self) -> 'AIMessage':
        """Create a copy of the message."""
        return AIMessage(
            id=self.id,  # We keep the same ID for tracking
            source=self.source,
            content=self.content,
            timestamp=self.timestamp,
            completed=self.completed
        )

    @property
    def role(self) -> str:
        """Get the wire role ('user' or 'assistant') for this message."""
        return self.source.value

    def to_request_dict(self) -> Dict[str, str]:
        """Convert message to the `{role, content}` shape sent to the chat endpoint."""
        return {
            "role": self.role,
            "content": self.content
        }

    def to_transcript_dict(self) -> Dict:
        """Convert message to transcript format."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "type": self._SOURCE_TYPE_MAP[self.source],
            "content": self.content,
            "completed": self.completed
        }

    @classmethod
    def from_transcript_dict(cls, data: Dict) -> 'AIMessage':
        """Create a Message instance from transcript dictionary format.

        Args:
            data: Dictionary containing message data

        Returns:
            New Message instance

        Raises:
            ValueError: If required fields are missing or invalid
        """
        required_fields = ["id", "timestamp", "type", "content"]
        missing_fields = [f for f in required_fields if f not in data]
        if missing_fields:
            raise ValueError(f"Missing required fields: {', '.join(missing_fields)}")

        msg_type = data["type"]
        if msg_type not in cls._TYPE_SOURCE_MAP:
            raise ValueError(f"Invalid message type: {msg_type}")

        try:
            timestamp = datetime.fromisoformat(data["timestamp"])

        except ValueError as e:
            raise ValueError(f"Invalid timestamp format: {data['timestamp']}") from e

        return cls(
            id=data["id"],
            source=cls._TYPE_SOURCE_MAP[msg_type],
            content=data["content"],
            timestamp=timestamp,
            completed=data.get("completed", True)
        )

"""AI chat streaming framework."""

from ai.ai_backend import AIBackend
from ai.ai_backend_settings import AIBackendSettings
from ai.ai_conversation import AIConversation, AIConversationEvent, AIConversationState
from ai.ai_conversation_history import AIConversationHistory
from ai.ai_exceptions import AIStreamError
from ai.ai_message import AIMessage
from ai.ai_message_source import AIMessageSource
from ai.ai_response import AIError, AIResponse, AIStreamOutcome
from ai.ai_stream_decoder import AIStreamDecoder

__all__ = [
    "AIBackend",
    "AIBackendSettings",
    "AIConversation",
    "AIConversationEvent",
    "AIConversationHistory",
    "AIConversationState",
    "AIError",
    "AIMessage",
    "AIMessageSource",
    "AIResponse",
    "AIStreamDecoder",
    "AIStreamError",
    "AIStreamOutcome"
]

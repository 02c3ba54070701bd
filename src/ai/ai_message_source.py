"""Conversation message roles."""

from enum import Enum


class AIMessageSource(Enum):
    """Enumeration of possible message sources, valued by their wire role."""
    USER = "user"
    AI = "assistant"

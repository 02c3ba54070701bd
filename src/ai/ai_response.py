"""AI streaming response records."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class AIStreamOutcome(Enum):
    """Terminal state of a single streaming attempt."""
    COMPLETED = "completed"
    RATE_LIMITED = "rate_limited"
    PAYMENT_REQUIRED = "payment_required"
    TRANSPORT_ERROR = "transport_error"
    CANCELLED = "cancelled"


@dataclass
class AIError:
    """Error information from AI backend responses."""
    code: str
    message: str
    outcome: AIStreamOutcome = AIStreamOutcome.TRANSPORT_ERROR
    details: Dict | None = None


@dataclass
class AIResponse:
    """
    Update from an AI backend.

    `content` always carries the full accumulated text so far, never just the latest fragment.
    """
    content: str
    fragment: str = ""
    connected: bool = False
    completed: bool = False
    error: AIError | None = None

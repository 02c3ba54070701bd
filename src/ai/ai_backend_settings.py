"""Settings for a remote AI service."""

from dataclasses import dataclass


@dataclass
class AIBackendSettings:
    """Settings for a specific AI backend or upstream service."""
    enabled: bool = False
    api_key: str = ""
    url: str = ""

"""User settings module for storing application-wide settings."""

from dataclasses import dataclass, field
import json
import os
from typing import Dict

from ai.ai_backend_settings import AIBackendSettings


DEFAULT_GATEWAY_MODEL = "google/gemini-2.5-flash"


@dataclass
class UserSettings:
    """
    User-specific application settings.

    `ai_backends` holds one entry per remote service:

    - `mentor_chat`: the functions endpoint the chat client streams from (publishable key)
    - `gateway`: the OpenAI-compatible completion gateway the functions call
    - `assemblyai`: the speech-to-text service used for transcription
    """
    ai_backends: Dict[str, AIBackendSettings] = field(default_factory=dict)
    gateway_model: str = DEFAULT_GATEWAY_MODEL

    @classmethod
    def create_default(cls) -> "UserSettings":
        """Create a new UserSettings object with default empty values."""
        return cls(
            ai_backends={
                "mentor_chat": AIBackendSettings(),
                "gateway": AIBackendSettings(),
                "assemblyai": AIBackendSettings()
            },
            gateway_model=DEFAULT_GATEWAY_MODEL
        )

    @classmethod
    def load(cls, path: str) -> "UserSettings":
        """
        Load user settings from file.

        Args:
            path: Path to the settings file

        Returns:
            UserSettings object with loaded values

        Raises:
            json.JSONDecodeError: If file contains invalid JSON
        """
        # Start with default settings
        settings = cls.create_default()

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

            if "ai_backends" in data:
                for backend_id, backend_data in data["ai_backends"].items():
                    settings.ai_backends[backend_id] = AIBackendSettings(
                        enabled=backend_data.get("enabled", False),
                        api_key=backend_data.get("api_key", ""),
                        url=backend_data.get("url", "")
                    )

            settings.gateway_model = data.get("gatewayModel", DEFAULT_GATEWAY_MODEL)

        return settings

    def save(self, path: str) -> None:
        """
        Save user settings to file.

        Args:
            path: Path to save the settings file

        Raises:
            OSError: If there's an issue creating the directory or writing the file
        """
        # Ensure directory exists
        os.makedirs(os.path.dirname(path), mode=0o700, exist_ok=True)

        ai_backends_data = {}
        for backend_id, backend_settings in self.ai_backends.items():
            ai_backends_data[backend_id] = {
                "enabled": backend_settings.enabled,
                "api_key": backend_settings.api_key,
                "url": backend_settings.url
            }

        data = {
            "ai_backends": ai_backends_data,
            "gatewayModel": self.gateway_model
        }

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=4)

        # Set secure permissions for settings file (contains API keys)
        os.chmod(path, 0o600)

"""
Manages Pivot Mentor user settings, primarily API keys and service URLs.
"""

import logging
import os
from typing import cast

from ai.ai_backend_settings import AIBackendSettings
from pivot_mentor.user.user_settings import UserSettings


class UserManager:
    """
    Manages Pivot Mentor user settings.

    Implements singleton pattern for global access to user settings.
    Handles loading/saving settings and merging with environment variables.
    """
    USER_DIR = ".pivot-mentor"
    SETTINGS_FILE = "user-settings.json"

    # Environment variables consulted for services with no saved key
    ENV_KEYS = {
        "mentor_chat": "PIVOT_PUBLISHABLE_KEY",
        "gateway": "LOVABLE_API_KEY",
        "assemblyai": "ASSEMBLYAI_API_KEY"
    }
    FUNCTIONS_URL_ENV = "PIVOT_FUNCTIONS_URL"

    _instance = None
    _logger = logging.getLogger("UserManager")

    def __new__(cls) -> 'UserManager':
        """Create or return singleton instance."""
        if cls._instance is None:
            cls._instance = super(UserManager, cls).__new__(cls)

        return cls._instance

    def __init__(self) -> None:
        """Initialize user manager if not already initialized."""
        if not hasattr(self, '_initialized'):
            self._user_path = os.path.expanduser(f"~/{self.USER_DIR}")
            self._settings: UserSettings | None = None
            self._load_settings()
            self._apply_environment()
            self._initialized = True

    def _get_settings_path(self) -> str:
        """Get path to user settings file."""
        return os.path.join(self._user_path, self.SETTINGS_FILE)

    def _load_settings(self) -> None:
        """
        Load user settings from the settings file.

        Creates default settings if the file doesn't exist.
        """
        try:
            # Ensure user directory exists
            os.makedirs(self._user_path, mode=0o700, exist_ok=True)

            settings_path = self._get_settings_path()
            if os.path.exists(settings_path):
                self._settings = UserSettings.load(settings_path)
                self._logger.info("Loaded user settings from %s", settings_path)
                return

            # Create default settings
            self._settings = UserSettings.create_default()
            self._logger.info("Created default user settings")
            self._save_settings()

        except Exception:
            self._logger.exception("Failed to load user settings")
            # Create default settings as fallback
            self._settings = UserSettings.create_default()

    def _save_settings(self) -> None:
        """Save current settings to file."""
        if not self._settings:
            return

        try:
            settings_path = self._get_settings_path()
            self._settings.save(settings_path)
            self._logger.info("Saved user settings to %s", settings_path)

        except OSError as e:
            self._logger.error("Failed to save user settings: %s", str(e))

    def _apply_environment(self) -> None:
        """Fill in services that have no saved settings from environment variables."""
        settings = cast(UserSettings, self._settings)

        for backend_id, env_name in self.ENV_KEYS.items():
            api_key = os.environ.get(env_name)
            current = settings.ai_backends.get(backend_id, AIBackendSettings())
            if api_key is not None and not current.enabled:
                settings.ai_backends[backend_id] = AIBackendSettings(
                    enabled=True,
                    api_key=api_key,
                    url=current.url
                )

        functions_url = os.environ.get(self.FUNCTIONS_URL_ENV)
        mentor_chat = settings.ai_backends.setdefault("mentor_chat", AIBackendSettings())
        if functions_url and not mentor_chat.url:
            mentor_chat.url = f"{functions_url.rstrip('/')}/mentor-chat"

    def settings(self) -> UserSettings:
        """
        Get the current user settings.

        Returns:
            The current UserSettings object
        """
        return cast(UserSettings, self._settings)

    def get_backend_settings(self, backend_id: str) -> AIBackendSettings:
        """
        Get settings for one service.

        Args:
            backend_id: Service name, e.g. 'gateway'

        Returns:
            The service settings (disabled defaults if unknown)
        """
        return self.settings().ai_backends.get(backend_id, AIBackendSettings())

"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/config.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Manages application configuration using QSettings. Standardizes
                paths for configuration and data across different platforms
                (XDG standards on Linux).
------------------------------------------------------------------------------
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from PyQt6.QtCore import QSettings, QStandardPaths


class AppConfig:
    """
    Manages application configuration using QSettings.
    Singleton-like usage via class methods or single instance.
    """

    KEY_VAULT_PATH: str = "vault_path"
    KEY_AI_PROVIDER: str = "ai_provider"  # "claude" or "gemini"
    KEY_ANTHROPIC_KEY: str = "anthropic_key"
    KEY_GEMINI_KEY: str = "gemini_key"
    KEY_ANTHROPIC_FAST_MODEL: str = "anthropic_fast_model"
    KEY_ANTHROPIC_PRECISE_MODEL: str = "anthropic_precise_model"
    KEY_GEMINI_FAST_MODEL: str = "gemini_fast_model"
    KEY_GEMINI_PRECISE_MODEL: str = "gemini_precise_model"
    KEY_AI_RETRIES: str = "ai_retries"
    KEY_CONFIRM_COLLISIONS: str = "confirm_name_collisions"
    KEY_LOW_CONFIDENCE: str = "low_confidence_threshold"
    KEY_LOG_LEVEL: str = "log_level"
    KEY_LOG_COMPONENTS: str = "log_components"

    DEFAULT_PROVIDER: str = "claude"
    DEFAULT_ANTHROPIC_FAST_MODEL: str = "claude-3-5-haiku-20241022"
    DEFAULT_ANTHROPIC_PRECISE_MODEL: str = "claude-sonnet-4-20250514"
    DEFAULT_GEMINI_FAST_MODEL: str = "gemini-2.0-flash"
    DEFAULT_GEMINI_PRECISE_MODEL: str = "gemini-2.5-pro"
    DEFAULT_AI_RETRIES: int = 3
    DEFAULT_LOW_CONFIDENCE: float = 0.5

    APP_ID: str = "paraflux"
    _active_profile: Optional[str] = None

    def __init__(self, profile: Optional[str] = None) -> None:
        """
        Initializes the configuration manager.

        Args:
            profile: Optional profile name (e.g. 'dev', 'test').
                    If provided, all paths and settings will be isolated (e.g. paraflux-dev).
        """
        if profile is None:
            profile = AppConfig._active_profile
        else:
            AppConfig._active_profile = profile

        self.profile = profile
        self.active_id = self.APP_ID
        if profile:
            self.active_id = f"{self.APP_ID}-{profile}"

        self.settings = QSettings(self.active_id, self.active_id)

    def get_config_dir(self) -> Path:
        """
        Returns the path to the application configuration directory.
        Forces a flat structure: ~/.config/paraflux[-profile]/
        """
        base_path = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.ConfigLocation)
        config_dir = Path(base_path) / self.active_id
        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir

    def get_data_dir(self) -> Path:
        """
        Returns the path to the application data directory.
        Forces a flat structure: ~/.local/share/paraflux[-profile]/
        """
        base_path = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.GenericDataLocation)
        data_dir = Path(base_path) / self.active_id
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def _get_setting(self, group: str, key: str, default: Any = None) -> Any:
        """
        Helper to retrieve a setting value from a specific group.

        Args:
            group: The configuration group name.
            key: The setting key.
            default: The default value if not found.

        Returns:
            The retrieved value or default.
        """
        if group:
            self.settings.beginGroup(group)
        val = self.settings.value(key, default)
        if group:
            self.settings.endGroup()
        return val

    def _set_setting(self, group: str, key: str, value: Any) -> None:
        """
        Helper to save a setting value into a specific group.

        Args:
            group: The configuration group name.
            key: The setting key.
            value: The value to save.
        """
        if isinstance(value, str):
            value = value.strip()

        if group:
            self.settings.beginGroup(group)
        self.settings.setValue(key, value)
        if group:
            self.settings.endGroup()

    def get_vault_path(self) -> str:
        """
        Retrieves the path to the PARA vault root.

        Returns:
            The vault path string.
        """
        return str(self._get_setting("Storage", self.KEY_VAULT_PATH, "vault"))

    def set_vault_path(self, path: str) -> None:
        """
        Saves the path to the PARA vault root.

        Args:
            path: The vault path string.
        """
        self._set_setting("Storage", self.KEY_VAULT_PATH, path)

    def get_ai_provider(self) -> str:
        """Retrieves the active AI provider ('claude' or 'gemini')."""
        return str(self._get_setting("AI", self.KEY_AI_PROVIDER, self.DEFAULT_PROVIDER))

    def set_ai_provider(self, provider: str) -> None:
        """Saves the active AI provider."""
        self._set_setting("AI", self.KEY_AI_PROVIDER, provider.lower())

    def get_anthropic_key(self) -> str:
        """
        Retrieves the Anthropic API key, falling back to environment variables.

        Returns:
            The API key string.
        """
        val = self._get_setting("AI", self.KEY_ANTHROPIC_KEY)
        if val is None or str(val).strip() == "":
            return os.environ.get("ANTHROPIC_API_KEY", "")
        return str(val)

    def set_anthropic_key(self, key: str) -> None:
        """Saves the Anthropic API key."""
        self._set_setting("AI", self.KEY_ANTHROPIC_KEY, key)

    def get_gemini_key(self) -> str:
        """
        Retrieves the Gemini API key, falling back to environment variables.

        Returns:
            The API key string.
        """
        val = self._get_setting("AI", self.KEY_GEMINI_KEY)
        if val is None or str(val).strip() == "":
            return os.environ.get("GEMINI_API_KEY", "")
        return str(val)

    def set_gemini_key(self, key: str) -> None:
        """Saves the Gemini API key."""
        self._set_setting("AI", self.KEY_GEMINI_KEY, key)

    def get_anthropic_fast_model(self) -> str:
        return str(self._get_setting("AI", self.KEY_ANTHROPIC_FAST_MODEL, self.DEFAULT_ANTHROPIC_FAST_MODEL))

    def set_anthropic_fast_model(self, model: str) -> None:
        self._set_setting("AI", self.KEY_ANTHROPIC_FAST_MODEL, model)

    def get_anthropic_precise_model(self) -> str:
        return str(self._get_setting("AI", self.KEY_ANTHROPIC_PRECISE_MODEL, self.DEFAULT_ANTHROPIC_PRECISE_MODEL))

    def set_anthropic_precise_model(self, model: str) -> None:
        self._set_setting("AI", self.KEY_ANTHROPIC_PRECISE_MODEL, model)

    def get_gemini_fast_model(self) -> str:
        return str(self._get_setting("AI", self.KEY_GEMINI_FAST_MODEL, self.DEFAULT_GEMINI_FAST_MODEL))

    def set_gemini_fast_model(self, model: str) -> None:
        self._set_setting("AI", self.KEY_GEMINI_FAST_MODEL, model)

    def get_gemini_precise_model(self) -> str:
        return str(self._get_setting("AI", self.KEY_GEMINI_PRECISE_MODEL, self.DEFAULT_GEMINI_PRECISE_MODEL))

    def set_gemini_precise_model(self, model: str) -> None:
        self._set_setting("AI", self.KEY_GEMINI_PRECISE_MODEL, model)

    def get_ai_retries(self) -> int:
        """
        Retrieves the max number of attempts per AI request.

        Returns:
            The number of retries.
        """
        return int(self._get_setting("AI", self.KEY_AI_RETRIES, self.DEFAULT_AI_RETRIES))

    def set_ai_retries(self, retries: int) -> None:
        self._set_setting("AI", self.KEY_AI_RETRIES, retries)

    def get_confirm_name_collisions(self) -> bool:
        """
        Whether a same-named file at the destination becomes a pending
        decision instead of being filed with a numbered suffix.
        """
        val = self._get_setting("Organizer", self.KEY_CONFIRM_COLLISIONS, False)
        # QSettings returns "true"/"false" strings from INI backends
        if isinstance(val, str):
            return val.lower() == "true"
        return bool(val)

    def set_confirm_name_collisions(self, enabled: bool) -> None:
        self._set_setting("Organizer", self.KEY_CONFIRM_COLLISIONS, bool(enabled))

    def get_low_confidence_threshold(self) -> float:
        """Classifications below this confidence require user confirmation."""
        try:
            return float(self._get_setting("Organizer", self.KEY_LOW_CONFIDENCE, self.DEFAULT_LOW_CONFIDENCE))
        except (TypeError, ValueError):
            return self.DEFAULT_LOW_CONFIDENCE

    def set_low_confidence_threshold(self, threshold: float) -> None:
        self._set_setting("Organizer", self.KEY_LOW_CONFIDENCE, float(threshold))

    def get_log_level(self) -> str:
        """Retrieves the global log level."""
        return str(self._get_setting("Logging", self.KEY_LOG_LEVEL, "WARNING"))

    def set_log_level(self, level: str) -> None:
        """Saves the global log level."""
        self._set_setting("Logging", self.KEY_LOG_LEVEL, level.upper())

    def get_log_components(self) -> Dict[str, str]:
        """Retrieves a dictionary of component-specific log levels."""
        raw = str(self._get_setting("Logging", self.KEY_LOG_COMPONENTS, "{}"))
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    def set_log_components(self, components: Dict[str, str]) -> None:
        """Saves a dictionary of component-specific log levels."""
        self._set_setting("Logging", self.KEY_LOG_COMPONENTS, json.dumps(components))

    def get_log_file_path(self) -> Path:
        """Returns the absolute path to the log file."""
        return self.get_data_dir() / "paraflux.log"

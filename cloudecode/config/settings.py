"""
Settings management for CloudDecode.

Settings are read from ``settings.json`` in the platform configuration
directory and layered over built-in defaults.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from cloudecode.utils import platform_utils

CREDENTIAL_PROVIDER_MODES = ("auto", "keyring", "environment")
DEFAULT_TIMEOUT = 30.0


class Settings:
    """
    Settings for CloudDecode.

    Values live in a two-level mapping (section -> key -> value). A user file
    only needs the keys it overrides; everything else keeps its default.
    """

    DEFAULT_SETTINGS = {
        "api": {
            "model": "gpt-4.1-mini-2025-04-14",
            "temperature": 0.2,
            "timeout": DEFAULT_TIMEOUT,
            "min_request_interval": 0.5,
        },
        "ui": {
            "show_welcome_screen": True,
            "show_annotations": True,
        },
        "credentials": {
            "provider": "auto",
        },
        "advanced": {
            "debug_mode": False,
            "log_level": "INFO",
            "log_file": "",
        },
    }

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Args:
            config_dir (Optional[Path]): Override for the configuration
                directory. Defaults to the platform location.
        """
        self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        self.config_dir = Path(config_dir) if config_dir else self._get_config_dir()
        self.config_file = self.config_dir / "settings.json"

        os.makedirs(self.config_dir, exist_ok=True)

        if self.config_file.exists():
            self.load()

    def _get_config_dir(self) -> Path:
        if platform_utils.is_windows():
            return Path(os.environ.get("APPDATA", "")) / "CloudDecode"
        if platform_utils.is_macos():
            return Path.home() / "Library" / "Application Support" / "CloudDecode"

        # XDG layout elsewhere
        base = os.environ.get("XDG_CONFIG_HOME")
        return (Path(base) if base else Path.home() / ".config") / "cloudecode"

    def load(self) -> bool:
        """
        Merge the user's settings file over the defaults.

        Returns:
            bool: False if the file could not be read or is not a JSON object.
        """
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                overrides = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            print(f"Error loading settings: {e}")
            return False

        if not isinstance(overrides, dict):
            print("Error loading settings: top-level value must be an object")
            return False

        self._merge(self.settings, overrides)
        return True

    def _merge(self, target: Dict, overrides: Dict) -> None:
        for key, value in overrides.items():
            if isinstance(target.get(key), dict) and isinstance(value, dict):
                self._merge(target[key], value)
            else:
                target[key] = value

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Look up ``section.key``.

        Returns:
            Any: The value, or ``default`` when either level is missing.
        """
        try:
            return self.settings[section][key]
        except (KeyError, TypeError):
            return default

    def set(self, section: str, key: str, value: Any) -> bool:
        """
        Override ``section.key`` for this session.

        Returns:
            bool: False if ``section`` exists but is not a mapping.
        """
        if not isinstance(self.settings.get(section, {}), dict):
            print(f"Error setting {section}.{key}: section is not a mapping")
            return False

        self.settings.setdefault(section, {})[key] = value
        return True

    def get_log_file_path(self) -> Optional[Path]:
        """
        Resolve where logs should be written.

        Returns:
            Optional[Path]: ``advanced.log_file`` if set, ``cloudecode.log`` in
            the config directory in debug mode, otherwise None.
        """
        log_file = self.get("advanced", "log_file", "")
        if log_file:
            return Path(log_file)
        if self.get("advanced", "debug_mode", False):
            return self.config_dir / "cloudecode.log"
        return None

    def get_credential_provider_mode(self) -> str:
        """The configured credential provider variant; unknown values mean "auto"."""
        mode = str(self.get("credentials", "provider", "auto") or "auto").lower()
        return mode if mode in CREDENTIAL_PROVIDER_MODES else "auto"

    def get_request_timeout(self) -> float:
        """Timeout in seconds applied to each remote explanation request."""
        try:
            timeout = float(self.get("api", "timeout", DEFAULT_TIMEOUT))
        except (TypeError, ValueError):
            return DEFAULT_TIMEOUT
        return timeout if timeout > 0 else DEFAULT_TIMEOUT


# Global settings instance
settings = Settings()

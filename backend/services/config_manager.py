"""
Configuration Manager - Backend settings from defaults, config file and environment
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

DEFAULT_MODEL = "claude-opus-4-6"

# Environment variable -> config key
ENV_OVERRIDES = {
    "NOTES_DIR": "notesDir",
    "ANTHROPIC_API_KEY": "apiKey",
    "MODEL": "model",
}


class ConfigManager:
    """Manage configuration persistence"""

    _instance = None
    _config_file = None

    def __init__(self):
        # Values already in the environment take precedence over .env
        load_dotenv(Path.cwd() / ".env", override=False)

        try:
            # 1. explicit directory, 2. ~/.nucleus
            config_dir = os.environ.get("NUCLEUS_CONFIG_DIR") or os.path.expanduser("~/.nucleus")
            config_path = Path(config_dir)
            try:
                config_path.mkdir(parents=True, exist_ok=True)
                self._config_file = config_path / "config.json"
            except OSError as e:
                print(f"[ConfigManager] Cannot write to {config_dir}: {e}")
                self._config_file = None

            # 3. temp directory
            if not self._config_file:
                tmp_dir = Path(tempfile.gettempdir()) / "nucleus"
                tmp_dir.mkdir(parents=True, exist_ok=True)
                self._config_file = tmp_dir / "config.json"
                print(f"[ConfigManager] Using temporary config path: {self._config_file}")

        except OSError as e:
            print(f"[ConfigManager] Critical error in init: {e}")
            self._config_file = Path(tempfile.gettempdir()) / "nucleus_config_fallback.json"

        self._config = self._load_config()

    @classmethod
    def get_instance(cls) -> "ConfigManager":
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = ConfigManager()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Drop the singleton so the next get_instance() re-reads everything"""
        cls._instance = None

    def _load_config(self) -> dict[str, Any]:
        """Load configuration: defaults, then config file, then environment"""
        config = self._default_config()

        if self._config_file.exists():
            try:
                with open(self._config_file) as f:
                    stored = json.load(f)
                for key, value in stored.items():
                    if isinstance(value, dict) and isinstance(config.get(key), dict):
                        config[key] = {**config[key], **value}
                    else:
                        config[key] = value
            except (json.JSONDecodeError, OSError) as e:
                print(f"[ConfigManager] Error loading config: {e}")

        self._apply_environment(config)
        return config

    def _apply_environment(self, config: dict[str, Any]):
        for env_name, key in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                config[key] = value

        port = os.environ.get("PORT")
        if port:
            try:
                config["server"]["port"] = int(port)
            except ValueError:
                print(f"[ConfigManager] Ignoring invalid PORT value: {port}")

    def _default_config(self) -> dict[str, Any]:
        """Get default configuration"""
        return {
            "notesDir": "",
            "apiKey": "",
            "model": DEFAULT_MODEL,
            "maxSteps": 20,
            "maxTokens": 8192,
            "server": {"host": "0.0.0.0", "port": 3001},
        }

    def get_config(self) -> dict[str, Any]:
        """Get current configuration"""
        # Reload to pick up edits made by other processes
        self._config = self._load_config()
        return self._config.copy()

    def save_config(self, config: dict[str, Any]):
        """Save configuration to file"""
        self._config.update(config)

        # Values that came from the environment stay out of the file
        from_env = {key for env_name, key in ENV_OVERRIDES.items() if os.environ.get(env_name)}
        persisted = {k: v for k, v in self._config.items() if k not in from_env or k in config}

        self._config_file.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self._config_file, "w") as f:
                json.dump(persisted, f, indent=2)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}")

    def get(self, key: str, default=None):
        """Get specific config value"""
        return self._config.get(key, default)

    def set(self, key: str, value: Any):
        """Set specific config value"""
        self.save_config({key: value})

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

# Package defaults (bundled with code)
PACKAGE_CONFIG_DIR = Path(__file__).parent / "defaults"

# User configs (in project root, gitignored)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
USER_CONFIG_DIR = PROJECT_ROOT / "config"

class ConfigLoader:
    """Load configuration with user overrides"""

    @staticmethod
    def load_config_file(path: Path) -> Dict[str, Any]:
        """Load a single JSON config file"""
        with open(path) as f:
            return json.load(f)

    @staticmethod
    def load_config(config_name: str) -> Dict[str, Any]:
        """
        Load config with fallback: user config -> default config

        Args:
            config_name: Name of the config file (e.g., 'settings.json')

        Raises:
            FileNotFoundError: If no config file was found

        Returns:
            Parsed JSON configuration
        """
        user_config_path = USER_CONFIG_DIR / config_name
        if user_config_path.exists():
            return ConfigLoader.load_config_file(user_config_path)

        default_config_path = PACKAGE_CONFIG_DIR / config_name
        if default_config_path.exists():
            return ConfigLoader.load_config_file(default_config_path)

        raise FileNotFoundError(
            f"Config file '{config_name}' not found in:\n"
            f" - {user_config_path}\n"
            f" - {default_config_path}"
        )

    @staticmethod
    def load_settings_config():
        """Load application settings"""
        return ConfigLoader.load_config('settings.json')

    @staticmethod
    def load_extractors_config():
        """Load document extractor registry configuration"""
        return ConfigLoader.load_config('extractors.json')



@dataclass
class Settings:
    """Typed view over settings.json plus environment overrides"""
    db_path: Path
    api_key_env: str
    classification_model: str
    document_model: str
    temperature: float
    log_level: str

    @property
    def api_key(self) -> Optional[str]:
        """Gemini API key read from the configured environment variable"""
        return os.getenv(self.api_key_env) or None

    @classmethod
    def load(cls, config: Optional[Dict[str, Any]] = None) -> "Settings":
        """
        Build settings from config.

        Args:
            config: Optional config dict. If None, loads from ConfigLoader.
                Useful for testing with custom configs.

        Environment:
            FINANCE_TRACKER_DB overrides the database path
            FINANCE_TRACKER_LOG_LEVEL overrides the log level
        """
        if config is None:
            config = ConfigLoader.load_settings_config()

        database = config.get("database", {})
        ai = config.get("ai", {})
        logging_config = config.get("logging", {})

        return cls(
            db_path=Path(os.getenv("FINANCE_TRACKER_DB") or database.get("path", "data/transactions.db")),
            api_key_env=ai.get("api_key_env", "GOOGLE_API_KEY"),
            classification_model=ai.get("classification_model", "gemini-2.0-flash"),
            document_model=ai.get("document_model", "gemini-2.5-pro"),
            temperature=float(ai.get("temperature", 0.0)),
            log_level=os.getenv("FINANCE_TRACKER_LOG_LEVEL") or logging_config.get("level", "INFO"),
        )

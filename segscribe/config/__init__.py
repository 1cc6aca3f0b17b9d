"""YAML configuration loader for Segscribe."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..models.session import SessionParameters

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_PROMPT = (
    "Considering everything said so far, summarize the overall key points "
    "as three bullet points. Return nothing other than the summary.\n\n"
    "{transcript}"
)


class SegscribeConfig:
    """Segscribe configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used and every key falls back to its default.
        """
        if config_path is None:
            self.config_file = None
            self.config: Dict[str, Any] = {}
            logger.info("No configuration file given, using defaults")
            return

        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        if 'google_cloud' in config and 'credentials_path' in config['google_cloud']:
            creds_path = config['google_cloud']['credentials_path']
            if not os.path.isabs(creds_path):
                config['google_cloud']['credentials_path'] = str(config_dir / creds_path)

        if 'logging' in config and 'file_path' in config['logging']:
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'session.input_language').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'session.output_language')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def session_parameters(self) -> SessionParameters:
        """Build validated session parameters from the 'session' section.

        Raises:
            pydantic.ValidationError: if the durations are not positive or the
                segment duration does not evenly divide the total duration
        """
        return SessionParameters(
            input_language=self.get('session.input_language', 'en-US'),
            output_language=self.get('session.output_language', 'en-US'),
            total_duration_seconds=self.get('session.total_duration_seconds', 900),
            segment_duration_seconds=self.get('session.segment_duration_seconds', 30),
        )

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - raises if not found."""
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            raise ValueError("Google credentials path not configured (google_cloud.credentials_path)")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_summary_api_key(self) -> Optional[str]:
        """OpenAI API key from config, falling back to OPENAI_API_KEY."""
        return self.get('summary.api_key') or os.environ.get('OPENAI_API_KEY')

    def get_summary_prompt(self) -> str:
        prompt = self.get('summary.prompt', DEFAULT_SUMMARY_PROMPT)
        if '{transcript}' not in prompt:
            raise ValueError("summary.prompt must contain a '{transcript}' placeholder")
        return prompt

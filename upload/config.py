"""
Upload Queue Configuration Handler

Manages the YAML override file for queue settings.
Provides defaults (from config/settings.py) and validation.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from config.settings import (
    CONVERT_MOV_TO_MP4,
    MAX_CONCURRENT_UPLOADS,
    MAX_UPLOAD_RETRIES,
    RESET_RETRY_COUNT_ON_MANUAL_RETRY,
    RETRY_DELAYS_SECONDS,
    UPLOAD_BUCKET,
    UPLOAD_QUEUE_CONFIG_PATH,
    UPLOAD_WORK_DIR,
)


class QueueConfig:
    """
    Upload queue configuration with YAML file support.

    Reads from config/upload_queue.yaml if it exists,
    otherwise uses defaults from config/settings.py.

    Usage:
        config = QueueConfig()
        limit = config.max_concurrent
        delays = config.retry_delays
    """

    # Default config file location
    DEFAULT_CONFIG_PATH = UPLOAD_QUEUE_CONFIG_PATH

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML config file (None = use default)

        Raises:
            ValueError: If a configured value is impossible
        """
        self.logger = logging.getLogger(__name__)
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH

        # Load configuration (defaults + file overrides)
        self._config = self._load_config()

    def _get_defaults(self) -> Dict[str, Any]:
        """Get default configuration values from settings"""
        return {
            # Scheduling
            'max_concurrent': MAX_CONCURRENT_UPLOADS,

            # Retry policy
            'max_retries': MAX_UPLOAD_RETRIES,
            'retry_delays': list(RETRY_DELAYS_SECONDS),
            'reset_retry_count_on_manual_retry': RESET_RETRY_COUNT_ON_MANUAL_RETRY,

            # Target
            'bucket': UPLOAD_BUCKET,
            'work_dir': str(UPLOAD_WORK_DIR),

            # Processing
            'convert_mov_to_mp4': CONVERT_MOV_TO_MP4,
        }

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file or use defaults"""
        config = self._get_defaults()

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}

                if not isinstance(file_config, dict):
                    raise ValueError("top-level YAML value must be a mapping")

                config.update(file_config)
                self.logger.info(f"Loaded queue config from {self.config_path}")

            except (OSError, yaml.YAMLError, ValueError) as e:
                self.logger.warning(
                    f"Failed to load config from {self.config_path}: {e}. "
                    f"Using defaults."
                )
        else:
            self.logger.debug(f"No queue config at {self.config_path}, using defaults")

        self._validate_config(config)
        return config

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate configuration values"""
        if int(config['max_concurrent']) < 1:
            raise ValueError("max_concurrent must be at least 1")

        if int(config['max_retries']) < 0:
            raise ValueError("max_retries cannot be negative")

        delays = config['retry_delays']
        if not isinstance(delays, (list, tuple)) or not delays:
            raise ValueError("retry_delays must be a non-empty list")

        if any(float(d) < 0 for d in delays):
            raise ValueError("retry_delays cannot contain negative values")

        if not config['bucket']:
            raise ValueError("bucket cannot be empty")

    def save(self) -> None:
        """Save configuration to YAML file"""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_path, 'w') as f:
                yaml.dump(
                    self._config,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    indent=2
                )

            self.logger.info(f"Config saved to {self.config_path}")

        except OSError as e:
            self.logger.error(f"Failed to save config: {e}")

    # =========================================================================
    # PROPERTY ACCESSORS
    # =========================================================================

    @property
    def max_concurrent(self) -> int:
        """Maximum number of items processed at once"""
        return int(self._config['max_concurrent'])

    @property
    def max_retries(self) -> int:
        """Automatic retries before an item is marked as error"""
        return int(self._config['max_retries'])

    @property
    def retry_delays(self) -> Tuple[float, ...]:
        """Delay (seconds) before each automatic retry"""
        return tuple(float(d) for d in self._config['retry_delays'])

    @property
    def reset_retry_count_on_manual_retry(self) -> bool:
        return bool(self._config['reset_retry_count_on_manual_retry'])

    @property
    def bucket(self) -> str:
        return self._config['bucket']

    @property
    def work_dir(self) -> Path:
        """Directory for converted/compressed/thumbnail files"""
        return Path(self._config['work_dir'])

    @property
    def convert_mov_to_mp4(self) -> bool:
        return bool(self._config['convert_mov_to_mp4'])

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key"""
        return self._config.get(key, default)

    def set(self, key: str, value: Any, save: bool = False) -> None:
        """
        Set configuration value.

        Args:
            key: Configuration key
            value: New value
            save: If True, save to file immediately

        Raises:
            ValueError: If the new value is invalid (config is left unchanged)
        """
        candidate = dict(self._config)
        candidate[key] = value
        self._validate_config(candidate)
        self._config = candidate

        if save:
            self.save()

    def reload(self) -> None:
        """Reload configuration from file"""
        self._config = self._load_config()
        self.logger.info("Configuration reloaded")

    def to_dict(self) -> Dict[str, Any]:
        """Get configuration as dictionary"""
        return self._config.copy()

    def __repr__(self) -> str:
        return f"QueueConfig(path={self.config_path})"

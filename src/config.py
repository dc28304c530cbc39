"""
Configuration module for the Crystal Caravan session client
Centralizes constants, rule tables and connection settings with validation
"""

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union
from urllib.parse import urlencode


class ConfigError(Exception):
    """Configuration validation error"""
    pass


def _safe_int_env(name: str, default: int, min_val: int = None, max_val: int = None) -> int:
    """
    Safely parse integer environment variable with bounds.
    Falls back to default on invalid values.
    """
    logger_local = logging.getLogger(__name__)
    try:
        value = int(os.getenv(name, str(default)))
        if min_val is not None:
            value = max(min_val, value)
        if max_val is not None:
            value = min(max_val, value)
        return value
    except (ValueError, TypeError):
        logger_local.warning(f"Invalid {name}, using default {default}")
        return default


def _safe_float_env(name: str, default: float) -> float:
    """Parse float environment variable, falling back to default."""
    try:
        return float(os.getenv(name, str(default)))
    except (ValueError, TypeError):
        logging.getLogger(__name__).warning(f"Invalid {name}, using default {default}")
        return default


def _bool_env(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).lower() == 'true'


class Config:
    """
    Client configuration with:
    - Grouped settings sections
    - Environment variable overrides
    - Validation
    - JSON file overrides
    """

    # ========== Game Rules ==========
    GAME_RULES = {
        # Crystal type -> tier, ordered from cheapest to most valuable
        'crystal_tiers': {'yellow': 1, 'green': 2, 'blue': 3, 'pink': 4},
        'max_crystals': 10,
        'max_market_position': 5,
        'coin_bonus_positions': 2,
    }

    # ========== Local Feedback ==========
    FEEDBACK = {
        'event_log_size': _safe_int_env('CARAVAN_EVENT_LOG_SIZE', 3, 1, 50),
        'invalid_action_flash': _safe_float_env('CARAVAN_INVALID_FLASH', 0.3),
    }

    # ========== Network Settings ==========
    NETWORK = {
        'server_url': os.getenv('CARAVAN_SERVER_URL', 'ws://localhost:8080'),
        'ws_path': '/ws',
        'open_timeout': 10,
        'auto_reconnect': _bool_env('CARAVAN_AUTO_RECONNECT'),
        'reconnect_delay': 1.0,
        'max_reconnect_delay': 30.0,
        'reconnect_multiplier': 1.5,
    }

    # ========== Logging Settings ==========
    LOGGING = {
        'level': os.getenv('LOG_LEVEL', 'INFO'),
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'date_format': '%Y-%m-%d %H:%M:%S',
        'max_bytes': 5 * 1024 * 1024,
        'backup_count': 3,
        'log_dir': os.getenv('CARAVAN_LOG_DIR', str(Path.home() / '.crystal_caravan' / 'logs')),
        'colored_output': True,
        'json_logs': False,
    }

    def __init__(self, config_file: Optional[str] = None, validate: bool = True):
        """
        Initialize configuration with optional validation

        Args:
            config_file: Optional path to JSON config file
            validate: Whether to validate configuration on init
        """
        self._lock = threading.RLock()
        self.config_file = config_file
        self._custom_settings: Dict[str, Dict[str, Any]] = {}

        if config_file:
            self.load_from_file(config_file)

        if validate:
            self.validate()

    def validate(self):
        """
        Validate all configuration values

        Raises:
            ConfigError: If configuration is invalid
        """
        errors = []

        tiers = self.GAME_RULES['crystal_tiers']
        if sorted(tiers.values()) != list(range(1, len(tiers) + 1)):
            errors.append("crystal_tiers must be a permutation of 1..N")
        if self.GAME_RULES['max_crystals'] < 1:
            errors.append("max_crystals must be positive")
        if self.GAME_RULES['max_market_position'] < 1:
            errors.append("max_market_position must be positive")

        if self.get('feedback', 'event_log_size') < 1:
            errors.append("event_log_size must be positive")
        if self.get('feedback', 'invalid_action_flash') <= 0:
            errors.append("invalid_action_flash must be positive")

        server_url = self.get('network', 'server_url', '')
        if not server_url.startswith(('ws://', 'wss://')):
            errors.append(f"server_url must be a ws:// or wss:// URL, got {server_url!r}")
        if self.NETWORK['reconnect_delay'] <= 0:
            errors.append("reconnect_delay must be positive")
        if self.NETWORK['max_reconnect_delay'] < self.NETWORK['reconnect_delay']:
            errors.append("max_reconnect_delay must not be below reconnect_delay")

        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if self.LOGGING['level'].upper() not in valid_levels:
            errors.append(f"Invalid log level: {self.LOGGING['level']}")

        if errors:
            raise ConfigError("Configuration validation failed:\n" + "\n".join(errors))

    def load_from_file(self, filepath: Union[str, Path]):
        """
        Load configuration overrides from a JSON file

        Args:
            filepath: Path to JSON configuration file
        """
        filepath = Path(filepath)

        if not filepath.exists():
            logging.getLogger(__name__).warning(f"Config file not found: {filepath}")
            return

        try:
            with open(filepath, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file: {e}")

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a JSON object")

        with self._lock:
            self._custom_settings = {
                section.lower(): dict(values)
                for section, values in data.items()
                if isinstance(values, dict)
            }

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get configuration value, custom settings first

        Args:
            section: Configuration section name
            key: Configuration key
            default: Default value if not found
        """
        with self._lock:
            custom = self._custom_settings.get(section.lower(), {})
            if key in custom:
                return custom[key]

            section_dict = getattr(self, section.upper(), None)
            if isinstance(section_dict, dict):
                return section_dict.get(key, default)

        return default

    def set(self, section: str, key: str, value: Any):
        """Override a configuration value at runtime"""
        with self._lock:
            self._custom_settings.setdefault(section.lower(), {})[key] = value

    def to_dict(self) -> dict:
        """Export entire configuration as dictionary"""
        with self._lock:
            custom_settings = {k: dict(v) for k, v in self._custom_settings.items()}

        return {
            'game_rules': self.GAME_RULES,
            'feedback': self.FEEDBACK,
            'network': self.NETWORK,
            'logging': self.LOGGING,
            'custom': custom_settings,
        }


@dataclass
class ClientConfig:
    """
    Per-connection settings for the session client.

    Defaults come from the global config (and therefore the environment).
    """

    server_url: str = field(default_factory=lambda: config.get('network', 'server_url'))
    ws_path: str = field(default_factory=lambda: config.get('network', 'ws_path'))
    open_timeout: float = field(default_factory=lambda: config.get('network', 'open_timeout'))
    auto_reconnect: bool = field(default_factory=lambda: config.get('network', 'auto_reconnect'))
    reconnect_delay: float = field(default_factory=lambda: config.get('network', 'reconnect_delay'))
    max_reconnect_delay: float = field(
        default_factory=lambda: config.get('network', 'max_reconnect_delay')
    )
    reconnect_multiplier: float = field(
        default_factory=lambda: config.get('network', 'reconnect_multiplier')
    )
    event_log_size: int = field(default_factory=lambda: config.get('feedback', 'event_log_size'))
    invalid_action_flash: float = field(
        default_factory=lambda: config.get('feedback', 'invalid_action_flash')
    )

    def __post_init__(self):
        if self.event_log_size < 1:
            raise ConfigError(f"event_log_size must be positive, got {self.event_log_size}")
        if self.invalid_action_flash <= 0:
            raise ConfigError(
                f"invalid_action_flash must be positive, got {self.invalid_action_flash}"
            )

    def session_url(self, session_id: str, player_name: str, avatar: str | None = None) -> str:
        """Websocket URL joining `session_id` as `player_name`."""
        params = {'session': session_id, 'name': player_name}
        if avatar:
            params['avatar'] = avatar
        query = urlencode(params)
        return f"{self.server_url.rstrip('/')}{self.ws_path}?{query}"


# Global configuration instance.
#
# Keep this import side-effect free: validation happens in the explicit
# startup path (see `src/main.py`).
config = Config(validate=False)

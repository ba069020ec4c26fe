"""
Configuration loader for the CC Router.

Loads settings from config.yaml and provides defaults.
Supports environment variable overrides.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field
import yaml


# Default configuration - matches config.yaml structure
DEFAULT_CONFIG = {
    'router': {
        'debug_mode': True,
        'default_device_index': 1,     # Device 0 is the router's own slot
        'max_listed_parameters': 10,
        'automap_on_start': False,
    },
    'midi': {
        'input_port': None,            # None = first available input
        'channel': None,               # None = all channels (0-15 otherwise)
    },
    'osc': {
        'host': '127.0.0.1',
        'send_port': 11000,
        'receive_port': 11001,
        'timeout': 2.0,
    },
    'catalog': {
        'path': None,                  # JSON catalog file or YAML maps directory
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
}

ENV_PREFIX = 'CC_ROUTER_'
CONFIG_ENV_VAR = 'CC_ROUTER_CONFIG'


def deep_merge(base: Dict, override: Dict) -> Dict:
    """Deep merge two dictionaries, override takes precedence."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


@dataclass
class RouterConfig:
    """Configuration container with convenient accessors."""

    _config: Dict = field(default_factory=dict)
    _config_path: Optional[Path] = None

    def __post_init__(self):
        if not self._config:
            self._config = copy.deepcopy(DEFAULT_CONFIG)

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get a nested config value.

        Examples:
            config.get('osc', 'send_port')
            config.get('router', 'debug_mode')
        """
        value = self._config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def __getitem__(self, key: str) -> Any:
        """Allow dict-like access to top-level config sections."""
        return self._config.get(key, {})

    @property
    def path(self) -> Optional[Path]:
        return self._config_path

    @property
    def router(self) -> Dict:
        return self._config.get('router', {})

    @property
    def midi(self) -> Dict:
        return self._config.get('midi', {})

    @property
    def osc(self) -> Dict:
        return self._config.get('osc', {})

    @property
    def catalog(self) -> Dict:
        return self._config.get('catalog', {})

    @property
    def logging(self) -> Dict:
        return self._config.get('logging', {})

    def to_dict(self) -> Dict:
        """Return the full config as a dictionary."""
        return copy.deepcopy(self._config)


def _apply_env_overrides(config_data: Dict) -> None:
    # Format: CC_ROUTER_<SECTION>_<KEY>=value
    # Example: CC_ROUTER_OSC_SEND_PORT=11005
    for env_key, env_value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == CONFIG_ENV_VAR:
            continue
        parts = env_key[len(ENV_PREFIX):].lower().split('_', 1)
        if len(parts) != 2:
            continue
        section, key = parts
        if not isinstance(config_data.get(section), dict) or key not in config_data[section]:
            continue

        original = config_data[section][key]
        try:
            if isinstance(original, bool):
                config_data[section][key] = env_value.lower() in ('true', '1', 'yes')
            elif original is None:
                config_data[section][key] = env_value
            else:
                config_data[section][key] = type(original)(env_value)
        except (ValueError, TypeError):
            pass


def load_config(config_path: Optional[str] = None) -> RouterConfig:
    """
    Load configuration from YAML file.

    Search order:
    1. Explicit path if provided
    2. CC_ROUTER_CONFIG environment variable
    3. config.yaml in the current directory
    4. Default config

    Args:
        config_path: Optional explicit path to config file

    Returns:
        RouterConfig instance
    """
    if config_path:
        cfg_path = Path(config_path)
    elif os.environ.get(CONFIG_ENV_VAR):
        cfg_path = Path(os.environ[CONFIG_ENV_VAR])
    else:
        cfg_path = Path.cwd() / 'config.yaml'

    config_data = copy.deepcopy(DEFAULT_CONFIG)

    if cfg_path.exists():
        try:
            with open(cfg_path, 'r', encoding='utf-8') as f:
                user_config = yaml.safe_load(f) or {}
            if not isinstance(user_config, dict):
                raise ValueError("top level must be a mapping")

            # Merge user config over defaults
            config_data = deep_merge(DEFAULT_CONFIG, user_config)

        except (OSError, yaml.YAMLError, ValueError) as e:
            print(f"Warning: Could not load config from {cfg_path}: {e}")
            print("Using default configuration.")

    _apply_env_overrides(config_data)

    return RouterConfig(_config=config_data, _config_path=cfg_path)

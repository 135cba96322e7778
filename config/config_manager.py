import copy
import json
import os
from pathlib import Path
import yaml
from loguru import logger

CONFIG_PATH = Path(__file__).parent / 'config.yaml'

# Default configuration
DEFAULT_CONFIG = {
    'logging': {
        'log_file': '',
        'warning_log_file': '',
        'log_level': 'INFO',
        'log_rotation': '10 MB'
    },
    'api': {
        'login_url': 'https://www.flightradar24.com/user/login',
        'history_url': 'https://api.flightradar24.com/common/v1/flight/list.json',
        'page_limit': 25,
        'max_pages': 1,
        'timeout_seconds': 30.0,
        'preloaded_data': False,
        'preloaded_path': '',
    },
    'output': {
        'indent': 0,
        'with_diagnostics': False,
    }
}

# Environment variables override config keys using a double underscore (__) as a separator,
# e.g. API__MAX_PAGES for config['api']['max_pages']

_TRUE_VALUES = ('true', '1', 't', 'y', 'yes')

# API limits that must stay above zero
_POSITIVE_KEYS = ('api.page_limit', 'api.max_pages', 'api.timeout_seconds')

def _cast_env_value(env_value, default):
    """Cast an environment string to the type of the default value. Raises ValueError."""
    if isinstance(default, bool):
        return env_value.strip().lower() in _TRUE_VALUES
    if isinstance(default, int):
        return int(env_value)
    if isinstance(default, float):
        return float(env_value)
    return env_value

def _override_with_env_vars(config_dict, defaults, parent_key=""):
    """
    Recursively overrides values with environment variables named like SECTION__KEY.
    The type to cast to comes from DEFAULT_CONFIG, so a file value of the wrong type
    does not change how an override is read.
    """
    for key, value in config_dict.items():
        dotted = f"{parent_key}.{key}" if parent_key else key
        default = defaults.get(key, value) if isinstance(defaults, dict) else value

        if isinstance(value, dict):
            _override_with_env_vars(value, default, dotted)
            continue

        env_var_name = dotted.replace('.', '__').upper()
        env_value = os.environ.get(env_var_name)
        if env_value is None:
            continue

        try:
            cast_value = _cast_env_value(env_value, default)
        except ValueError:
            logger.warning(f"Could not cast env var {env_var_name}='{env_value}' to {type(default).__name__}. Using '{value}'.")
            continue
        if dotted in _POSITIVE_KEYS and cast_value <= 0:
            logger.warning(f"Env var {env_var_name}='{env_value}' must be positive. Using '{value}'.")
            continue

        config_dict[key] = cast_value
        logger.info(f"Config key '{dotted}' overridden by environment variable '{env_var_name}'.")

def _merge(base, override):
    """Deep-merge `override` into `base` in place."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base

def _read_file(path):
    with open(path, 'r', encoding='utf-8') as file:
        if path.suffix.lower() in ('.yaml', '.yml'):
            return yaml.safe_load(file) or {}
        return json.load(file)

def load_config(config_path=CONFIG_PATH):
    """
    Load configuration from a YAML or JSON file (chosen by suffix) on top of the defaults,
    then override with environment variables.

    Args:
        config_path (str or Path): Path to the configuration file.

    Returns:
        dict: The configuration dictionary.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    path = Path(config_path)
    try:
        loaded = _read_file(path)
        if isinstance(loaded, dict):
            _merge(config, loaded)
            logger.info(f"Configuration loaded successfully from '{path}'.")
        else:
            logger.error(f"The configuration file '{path}' does not hold a mapping. Using defaults.")
    except FileNotFoundError:
        logger.warning(f"The configuration file '{path}' was not found. Proceeding with environment variables and defaults.")
    except (json.JSONDecodeError, yaml.YAMLError):
        logger.error(f"The configuration file '{path}' is malformed. Cannot load base configuration.")

    _override_with_env_vars(config, DEFAULT_CONFIG)
    return config

def get_config(config, key):
    """Get a specific configuration value by dotted key, e.g. 'api.max_pages'."""
    current = config
    for k in key.split('.'):
        if not isinstance(current, dict) or k not in current:
            return None
        current = current[k]
    return current

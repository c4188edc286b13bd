"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
YAML configuration file (e.g., ~/.throughcache/config.yaml).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from throughcache.domain.exceptions import ConfigurationError
from throughcache.domain.models.common import LoggingSettings, RetryPolicy, SUPPORTED_POLICIES

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".throughcache"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_STORE_PATH = DEFAULT_CONFIG_DIR / "store.json"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "THROUGHCACHE_"

DEFAULT_CAPACITY = 128
DEFAULT_POLICY = "lru"
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


@dataclass(frozen=True)
class CacheSettings:
    """Validated cache manager options."""
    capacity: int = DEFAULT_CAPACITY
    eviction_policy: str = DEFAULT_POLICY
    ttl_seconds: Optional[float] = None


def load_configuration(
    config_file: Path = DEFAULT_CONFIG_FILE,
    env_file: Optional[Path] = None,
    force: bool = False,
) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    config_file = Path(config_file)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load or parse YAML config {config_file}: {e}") from e
        if isinstance(yaml_config, dict):
            _config.update(yaml_config)
            logger.info(f"Loaded configuration from YAML: {config_file}")
        elif yaml_config is not None:
            logger.warning(f"YAML config file {config_file} did not contain a mapping.")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: real environment variables take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    # 3. Environment Variables (Highest priority) are handled in get_config
    _loaded = True
    logger.info("Configuration loading process completed.")


def _env_name(key: str) -> str:
    return ENV_PREFIX + key.upper().replace('.', '_')


def _coerce(value: str) -> Any:
    lowered = value.strip().lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    if lowered in ('', 'none', 'null'):
        return None
    try:
        return float(value) if '.' in value else int(value)
    except ValueError:
        return value


def _lookup_nested(key: str) -> Any:
    # 'cache.capacity' resolves either a flat key or nested YAML mappings
    if key in _config:
        return _config[key]
    node: Any = _config
    for part in key.split('.'):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(key)
        node = node[part]
    return node


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (THROUGHCACHE_<KEY>, dots become underscores)
    3. YAML config (dotted keys walk nested mappings)
    4. Default value

    Args:
        key: The configuration key, e.g. 'cache.capacity'
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = _env_name(key)
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    try:
        return _lookup_nested(key)
    except KeyError:
        logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
        return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None

# --- Convenience Functions ---

def validate_cache_settings(capacity: Any, eviction_policy: Any, ttl_seconds: Any) -> CacheSettings:
    """Checks raw cache values and returns them as CacheSettings.

    Raises:
        ConfigurationError: If a value is missing its expected type or range.
    """
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        raise ConfigurationError(f"cache.capacity must be a positive integer, got {capacity!r}")

    policy = str(eviction_policy).strip().lower()
    if policy not in SUPPORTED_POLICIES:
        raise ConfigurationError(
            f"cache.eviction_policy must be one of {', '.join(SUPPORTED_POLICIES)}, got {policy!r}"
        )

    ttl = ttl_seconds
    if ttl is not None:
        if isinstance(ttl, bool) or not isinstance(ttl, (int, float)) or ttl <= 0:
            raise ConfigurationError(f"cache.ttl_seconds must be a positive number, got {ttl!r}")
        ttl = float(ttl)

    return CacheSettings(capacity=capacity, eviction_policy=policy, ttl_seconds=ttl)


def get_cache_settings() -> CacheSettings:
    """Builds validated cache settings from configuration.

    Raises:
        ConfigurationError: If a value is missing its expected type or range.
    """
    return validate_cache_settings(
        get_config('cache.capacity', DEFAULT_CAPACITY),
        get_config('cache.eviction_policy', DEFAULT_POLICY),
        get_config('cache.ttl_seconds'),
    )


def get_store_path() -> Path:
    """Location of the JSON backing store used by the CLI."""
    return Path(str(get_config('store.path', DEFAULT_STORE_PATH))).expanduser()


def _number(key: str, default: Any, kind: type, minimum: float) -> Any:
    value = get_config(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{key} must be a number, got {value!r}")
    if kind is int and value != int(value):
        raise ConfigurationError(f"{key} must be a whole number, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{key} must be >= {minimum}, got {value!r}")
    return kind(value)


def get_retry_settings() -> RetryPolicy:
    """Retry settings for the backing store.

    Raises:
        ConfigurationError: If a value is not a number or is out of range.
    """
    return RetryPolicy(
        max_retries=_number('store.retry.max_retries', 3, int, 0),
        initial_backoff_s=_number('store.retry.initial_backoff_s', 0.1, float, 0),
        backoff_factor=_number('store.retry.backoff_factor', 2.0, float, 1),
    )


def get_logging_settings() -> LoggingSettings:
    log_file = get_config('logging.file')
    return LoggingSettings(
        level=str(get_config('logging.level', 'WARNING')).upper(),
        format=str(get_config('logging.format', DEFAULT_LOG_FORMAT)),
        file=str(log_file) if log_file else None,
    )


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value by key for the current process.

    Args:
        key: Configuration key (e.g., 'cache.capacity')
        value: Value to set
    """
    logger.debug(f"Setting config: {key} = {value!r}")
    _config[key] = value


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")


def reset_configuration() -> None:
    """Forget everything loaded so the next load starts from scratch."""
    global _loaded
    _config.clear()
    _test_config.clear()
    _loaded = False

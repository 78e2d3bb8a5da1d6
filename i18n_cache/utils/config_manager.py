"""
Configuration manager for loading and saving settings from YAML/JSON files.
"""
import yaml
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict, fields
import os
from dotenv import load_dotenv

from ..core.exceptions import InvalidConfigError


STORE_TYPES = ("memory", "sqlite")


@dataclass
class CacheConfig:
    """Configuration for the translation cache."""
    enabled: bool = True
    store: str = "memory"                # memory, sqlite
    namespace: Optional[str] = None
    version_fetch_interval: float = 5.0  # seconds
    db_path: str = "data/i18n_cache.db"
    max_entries: int = 10000
    ttl_seconds: Optional[float] = None

    def validate(self):
        """
        Validate cache settings.

        Raises:
            InvalidConfigError: If a value has the wrong type or is out of range
        """
        _check_type(self.enabled, bool, "cache.enabled")
        _check_type(self.store, str, "cache.store")
        _check_type(self.namespace, (str, type(None)), "cache.namespace")
        _check_type(self.version_fetch_interval, (int, float), "cache.version_fetch_interval")
        _check_type(self.db_path, str, "cache.db_path")
        _check_type(self.max_entries, int, "cache.max_entries")
        _check_type(self.ttl_seconds, (int, float, type(None)), "cache.ttl_seconds")

        if self.store not in STORE_TYPES:
            raise InvalidConfigError(
                f"Unknown cache store: {self.store}",
                field="cache.store"
            )
        if self.version_fetch_interval < 0:
            raise InvalidConfigError(
                "version_fetch_interval must be >= 0",
                field="cache.version_fetch_interval"
            )
        if self.max_entries < 1:
            raise InvalidConfigError(
                "max_entries must be >= 1",
                field="cache.max_entries"
            )
        if self.ttl_seconds is not None and self.ttl_seconds <= 0:
            raise InvalidConfigError(
                "ttl_seconds must be positive",
                field="cache.ttl_seconds"
            )


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    log_dir: str = "logs"
    log_level: str = "INFO"
    console_level: str = "INFO"
    max_bytes: int = 10_000_000
    backup_count: int = 5
    use_colors: bool = True


@dataclass
class AppConfig:
    """Main application configuration."""
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    default_locale: str = "en"


class ConfigManager:
    """
    Configuration manager for loading/saving application settings.
    Supports YAML and JSON formats, environment variables, and defaults.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            config_path: Path to config file (YAML or JSON)
        """
        self.config_path = Path(config_path) if config_path else Path("i18n_cache.yaml")
        self.config: AppConfig = AppConfig()

        load_dotenv()

        self.load()

    def load(self) -> AppConfig:
        """
        Load configuration from file (if present) and environment.

        Returns:
            AppConfig instance

        Raises:
            InvalidConfigError: If the file or a value is invalid
        """
        if self.config_path.exists():
            if self.config_path.suffix in ['.yaml', '.yml']:
                data = self._load_yaml()
            elif self.config_path.suffix == '.json':
                data = self._load_json()
            else:
                raise InvalidConfigError(
                    f"Unsupported config format: {self.config_path.suffix}",
                    field="config_path"
                )
            self.config = self._parse_config(data)
        else:
            self.config = AppConfig()

        self._apply_env_vars()
        self.config.cache.validate()

        return self.config

    def save(self, config: Optional[AppConfig] = None):
        """
        Save configuration to file.

        Args:
            config: Config to save (uses current if None)
        """
        if config:
            self.config = config

        data = self._config_to_dict(self.config)

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.suffix in ['.yaml', '.yml']:
            self._save_yaml(data)
        elif self.config_path.suffix == '.json':
            self._save_json(data)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot notation key.

        Args:
            key: Configuration key (e.g., 'cache.store', 'cache.enabled')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self.config

        for part in key.split('.'):
            if hasattr(value, part):
                value = getattr(value, part)
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """
        Set configuration value by dot notation key.

        Args:
            key: Configuration key
            value: Value to set
        """
        parts = key.split('.')
        obj = self.config

        for part in parts[:-1]:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                raise KeyError(f"Invalid config key: {key}")

        if not hasattr(obj, parts[-1]):
            raise KeyError(f"Invalid config key: {key}")

        setattr(obj, parts[-1], value)

    def _load_yaml(self) -> Dict[str, Any]:
        with open(self.config_path, 'r', encoding='utf-8') as f:
            try:
                return yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise InvalidConfigError(f"Invalid YAML config: {e}", field="config_path") from e

    def _load_json(self) -> Dict[str, Any]:
        with open(self.config_path, 'r', encoding='utf-8') as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise InvalidConfigError(f"Invalid JSON config: {e}", field="config_path") from e

    def _save_yaml(self, data: Dict[str, Any]):
        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True, indent=2)

    def _save_json(self, data: Dict[str, Any]):
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _parse_config(self, data: Dict[str, Any]) -> AppConfig:
        """Parse dictionary to AppConfig."""
        config = AppConfig()

        if 'cache' in data:
            config.cache = _build_section(CacheConfig, data['cache'], 'cache')

        if 'logging' in data:
            config.logging = _build_section(LoggingConfig, data['logging'], 'logging')

        if 'default_locale' in data:
            config.default_locale = data['default_locale']

        return config

    def _config_to_dict(self, config: AppConfig) -> Dict[str, Any]:
        return {
            'cache': asdict(config.cache),
            'logging': asdict(config.logging),
            'default_locale': config.default_locale
        }

    def _apply_env_vars(self):
        """Override config with environment variables."""
        if os.getenv('I18N_CACHE_ENABLED'):
            self.config.cache.enabled = os.getenv('I18N_CACHE_ENABLED').lower() == 'true'

        if os.getenv('I18N_CACHE_STORE'):
            self.config.cache.store = os.getenv('I18N_CACHE_STORE')

        if os.getenv('I18N_CACHE_NAMESPACE'):
            self.config.cache.namespace = os.getenv('I18N_CACHE_NAMESPACE')

        if os.getenv('I18N_CACHE_DB_PATH'):
            self.config.cache.db_path = os.getenv('I18N_CACHE_DB_PATH')

        if os.getenv('LOG_LEVEL'):
            self.config.logging.log_level = os.getenv('LOG_LEVEL')


def _check_type(value: Any, expected, name: str):
    # bool is an int subclass; only accept it where bool is expected
    if isinstance(value, bool) and expected is not bool:
        valid = False
    else:
        valid = isinstance(value, expected)

    if not valid:
        raise InvalidConfigError(
            f"{name} has invalid type {type(value).__name__}",
            field=name
        )


def _build_section(section_class, data: Optional[Dict[str, Any]], name: str):
    if not data:
        return section_class()

    known = {f.name for f in fields(section_class)}
    unknown = set(data) - known
    if unknown:
        raise InvalidConfigError(
            f"Unknown {name} settings: {', '.join(sorted(unknown))}",
            field=name
        )
    return section_class(**data)


# ===== Global Config Instance =====

_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_path: Optional[Path] = None) -> ConfigManager:
    """
    Get global config manager instance.

    Args:
        config_path: Path to config file

    Returns:
        ConfigManager instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_path)
    return _config_manager


def get_config() -> AppConfig:
    """Get current application configuration."""
    return get_config_manager().config

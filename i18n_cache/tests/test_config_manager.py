"""
Tests for configuration loading.
"""
import json

import pytest
import yaml

from i18n_cache.core.exceptions import InvalidConfigError
from i18n_cache.utils import config_manager
from i18n_cache.utils.config_manager import AppConfig, CacheConfig, ConfigManager


def test_defaults_without_file(temp_dir):
    config_path = temp_dir / "i18n_cache.yaml"

    manager = ConfigManager(config_path)

    assert manager.config.cache == CacheConfig()
    assert manager.config.default_locale == "en"
    assert not config_path.exists()


def test_load_yaml(temp_dir):
    config_path = temp_dir / "config.yaml"
    config_path.write_text(yaml.safe_dump({
        "cache": {"store": "sqlite", "namespace": "web", "version_fetch_interval": 1.5},
        "default_locale": "de",
    }), encoding="utf-8")

    config = ConfigManager(config_path).config

    assert config.cache.store == "sqlite"
    assert config.cache.namespace == "web"
    assert config.cache.version_fetch_interval == 1.5
    assert config.default_locale == "de"


def test_load_json(temp_dir):
    config_path = temp_dir / "config.json"
    config_path.write_text(json.dumps({"cache": {"enabled": False}}), encoding="utf-8")

    assert ConfigManager(config_path).config.cache.enabled is False


def test_env_overrides(temp_dir, monkeypatch):
    monkeypatch.setenv("I18N_CACHE_ENABLED", "false")
    monkeypatch.setenv("I18N_CACHE_STORE", "sqlite")
    monkeypatch.setenv("I18N_CACHE_NAMESPACE", "mail")
    monkeypatch.setenv("I18N_CACHE_DB_PATH", str(temp_dir / "env.db"))

    config = ConfigManager(temp_dir / "missing.yaml").config

    assert config.cache.enabled is False
    assert config.cache.store == "sqlite"
    assert config.cache.namespace == "mail"
    assert config.cache.db_path == str(temp_dir / "env.db")
    assert config.logging.log_level == "WARNING"


def test_unknown_store_rejected(temp_dir):
    config_path = temp_dir / "config.yaml"
    config_path.write_text("cache:\n  store: redis\n", encoding="utf-8")

    with pytest.raises(InvalidConfigError) as exc_info:
        ConfigManager(config_path)

    assert exc_info.value.field == "cache.store"


def test_unknown_setting_rejected(temp_dir):
    config_path = temp_dir / "config.yaml"
    config_path.write_text("cache:\n  colour: blue\n", encoding="utf-8")

    with pytest.raises(InvalidConfigError):
        ConfigManager(config_path)


def test_invalid_yaml_rejected(temp_dir):
    config_path = temp_dir / "config.yaml"
    config_path.write_text("cache: [unclosed\n", encoding="utf-8")

    with pytest.raises(InvalidConfigError):
        ConfigManager(config_path)


def test_unsupported_format(temp_dir):
    config_path = temp_dir / "config.ini"
    config_path.write_text("[cache]\n", encoding="utf-8")

    with pytest.raises(InvalidConfigError):
        ConfigManager(config_path)


def test_save_and_reload(temp_dir):
    config_path = temp_dir / "config.yaml"
    manager = ConfigManager(config_path)
    manager.set("cache.namespace", "api")
    manager.save()

    assert ConfigManager(config_path).config.cache.namespace == "api"


def test_dotted_get_and_set(temp_dir):
    manager = ConfigManager(temp_dir / "config.yaml")

    assert manager.get("cache.store") == "memory"
    assert manager.get("cache.nothing", "fallback") == "fallback"

    manager.set("cache.max_entries", 5)
    assert manager.config.cache.max_entries == 5

    with pytest.raises(KeyError):
        manager.set("cache.nothing", 1)


def test_validate_ranges():
    with pytest.raises(InvalidConfigError):
        CacheConfig(version_fetch_interval=-1).validate()
    with pytest.raises(InvalidConfigError):
        CacheConfig(max_entries=0).validate()
    with pytest.raises(InvalidConfigError):
        CacheConfig(ttl_seconds=0).validate()

    AppConfig().cache.validate()


def test_global_manager_is_shared(temp_dir, monkeypatch):
    monkeypatch.setattr(config_manager, "_config_manager", None)
    config_path = temp_dir / "shared.yaml"
    config_path.write_text("cache:\n  namespace: shared\n", encoding="utf-8")

    manager = config_manager.get_config_manager(config_path)

    assert config_manager.get_config_manager() is manager
    assert config_manager.get_config().cache.namespace == "shared"


@pytest.mark.parametrize("setting", [
    {"version_fetch_interval": "5"},
    {"max_entries": "100"},
    {"max_entries": True},
    {"enabled": "yes"},
    {"ttl_seconds": "60"},
    {"namespace": 7},
])
def test_wrong_types_rejected(temp_dir, setting):
    config_path = temp_dir / "config.yaml"
    config_path.write_text(yaml.safe_dump({"cache": setting}), encoding="utf-8")

    with pytest.raises(InvalidConfigError) as exc_info:
        ConfigManager(config_path)

    assert exc_info.value.field == f"cache.{next(iter(setting))}"

"""
Tests for the command line interface.
"""
import pytest
import yaml
from click.testing import CliRunner

from i18n_cache.cli.cli_interface import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(temp_dir):
    path = temp_dir / "i18n_cache.yaml"
    path.write_text(yaml.safe_dump({
        "cache": {"store": "sqlite", "db_path": str(temp_dir / "cache.db")},
        "logging": {"log_dir": str(temp_dir / "logs")},
    }), encoding="utf-8")
    return path


@pytest.fixture
def translations_file(temp_dir, sample_translations):
    path = temp_dir / "locales.yaml"
    path.write_text(yaml.safe_dump(sample_translations, allow_unicode=True), encoding="utf-8")
    return path


def test_version_starts_at_zero(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "version"])

    assert result.exit_code == 0
    assert "Cache epoch: 0" in result.output


def test_invalidate_persists_epoch(runner, config_file):
    runner.invoke(cli, ["--config", str(config_file), "invalidate"])
    result = runner.invoke(cli, ["--config", str(config_file), "invalidate"])

    assert result.exit_code == 0
    assert "Cache invalidated" in result.output
    assert "epoch 2" in result.output

    result = runner.invoke(cli, ["--config", str(config_file), "version"])
    assert "Cache epoch: 2" in result.output


def test_lookup(runner, config_file, translations_file):
    result = runner.invoke(cli, [
        "--config", str(config_file),
        "lookup", "en", "welcome", "-t", str(translations_file), "--var", "name=Ann",
    ])

    assert result.exit_code == 0
    assert result.output.strip() == "Welcome, Ann!"


def test_lookup_plural(runner, config_file, translations_file):
    result = runner.invoke(cli, [
        "--config", str(config_file),
        "lookup", "en", "inbox.messages", "-t", str(translations_file), "--count", "3",
    ])

    assert result.exit_code == 0
    assert result.output.strip() == "3 messages"


def test_lookup_missing(runner, config_file, translations_file):
    result = runner.invoke(cli, [
        "--config", str(config_file),
        "lookup", "en", "nothing", "-t", str(translations_file),
    ])

    assert result.exit_code == 1
    assert "translation missing: en.nothing" in result.output


def test_lookup_bad_variable(runner, config_file, translations_file):
    result = runner.invoke(cli, [
        "--config", str(config_file),
        "lookup", "en", "welcome", "-t", str(translations_file), "--var", "name",
    ])

    assert result.exit_code != 0
    assert "NAME=VALUE" in result.output


def test_stats(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "stats"])

    assert result.exit_code == 0
    assert "total_entries" in result.output
    assert "sqlite" in result.output


def test_disabled_cache(runner, temp_dir):
    config_path = temp_dir / "disabled.yaml"
    config_path.write_text("cache:\n  enabled: false\n", encoding="utf-8")

    result = runner.invoke(cli, ["--config", str(config_path), "version"])

    assert result.exit_code == 1
    assert "disabled" in result.output


def test_invalid_config(runner, temp_dir):
    config_path = temp_dir / "bad.yaml"
    config_path.write_text("cache:\n  store: redis\n", encoding="utf-8")

    result = runner.invoke(cli, ["--config", str(config_path), "version"])

    assert result.exit_code == 1
    assert "Unknown cache store" in result.output


def test_quoted_number_in_config(runner, temp_dir):
    config_path = temp_dir / "quoted.yaml"
    config_path.write_text('cache:\n  version_fetch_interval: "5"\n', encoding="utf-8")

    result = runner.invoke(cli, ["--config", str(config_path), "version"])

    assert result.exit_code == 1
    assert "version_fetch_interval" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)

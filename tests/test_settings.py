"""Tests for layered settings loading."""

from pathlib import Path

import pytest

from appdoc_core.errors import ConfigError
from appdoc_core.settings import AppdocSettings, SettingsLoader


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults_without_file_or_env(tmp_path: Path):
    settings = SettingsLoader.load(start_path=tmp_path, environ={})
    assert settings.mappings_dir == Path("config/field-mappings")
    assert settings.default_mapping == "default"
    assert settings.instance_url is None
    assert settings.log_level == "INFO"


def test_settings_file_is_found_walking_up(tmp_path: Path):
    _write(tmp_path / ".appdoc" / "config.toml", 'mappings_dir = "maps"\nlog_level = "debug"\n')
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    settings = SettingsLoader.load(start_path=nested, environ={})

    assert settings.mappings_dir == tmp_path / "maps"
    assert settings.log_level == "DEBUG"


def test_nested_tables_merge_over_defaults(tmp_path: Path):
    config = _write(
        tmp_path / "settings.toml",
        '[display]\nempty_marker = "n/a"\n\n[reduced]\ninclude_labels = ["Email"]\n',
    )
    settings = SettingsLoader.load(config, environ={})
    assert settings.display.empty_marker == "n/a"
    assert settings.display.yes_text == "Yes"
    assert settings.reduced.include_labels == ["Email"]
    assert "Id" in settings.reduced.exclude_paths
    assert settings.formatter().empty_marker == "n/a"
    assert settings.projection_policy().include_labels == frozenset({"Email"})


def test_environment_overrides_file(tmp_path: Path):
    config = _write(tmp_path / "settings.toml", 'output_dir = "/srv/out"\n')
    settings = SettingsLoader.load(
        config,
        environ={
            "PDF_OUTPUT_DIR": "/tmp/legacy",
            "APPDOC_OUTPUT_DIR": "/tmp/output",
            "SF_INSTANCE_URL": "https://example.my.salesforce.com/",
        },
    )
    assert settings.output_dir == Path("/tmp/output")
    assert settings.instance_url == "https://example.my.salesforce.com"


def test_legacy_env_names(tmp_path: Path):
    settings = SettingsLoader.load(
        start_path=tmp_path, environ={"PDF_TEMPLATE_DIR": "/opt/templates"}
    )
    assert settings.template_dir == Path("/opt/templates")


def test_missing_explicit_file_raises(tmp_path: Path):
    with pytest.raises(ConfigError):
        SettingsLoader.load(tmp_path / "missing.toml", environ={})


def test_invalid_toml_raises(tmp_path: Path):
    config = _write(tmp_path / "settings.toml", "mappings_dir = \n")
    with pytest.raises(ConfigError):
        SettingsLoader.load(config, environ={})


def test_unknown_keys_raise(tmp_path: Path):
    config = _write(tmp_path / "settings.toml", 'mapping_dir = "typo"\n')
    with pytest.raises(ConfigError):
        SettingsLoader.load(config, environ={})


def test_bad_log_level_raises(tmp_path: Path):
    with pytest.raises(ConfigError):
        SettingsLoader.load(start_path=tmp_path, environ={"LOG_LEVEL": "loud"})


def test_model_defaults_include_school_abbreviations():
    assert AppdocSettings().school_abbreviations["Saybrook University"] == "SAY"

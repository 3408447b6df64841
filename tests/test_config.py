"""
Tests for the YAML configuration layer.
"""

from pathlib import Path

import pytest
import yaml

from dktop import config as config_module
from dktop.config import AppConfig, ConfigManager


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "dktop" / "config.yaml"


def test_missing_file_gives_defaults(config_path):
    cm = ConfigManager(config_path)
    assert cm.config == AppConfig()
    assert cm.get_refresh_interval() == 1.0
    assert cm.config.log_lines == 100


def test_save_and_reload(config_path):
    cm = ConfigManager(config_path)
    cm.config.refresh_rate = 2000
    cm.add_autostart("web")
    cm.save_config()

    assert config_path.exists()
    reloaded = ConfigManager(config_path)
    assert reloaded.config.refresh_rate == 2000
    assert reloaded.config.autostart_list == ["web"]
    assert reloaded.get_refresh_interval() == 2.0


def test_saved_file_is_plain_yaml(config_path):
    cm = ConfigManager(config_path)
    cm.add_autostart("db")
    cm.save_config()
    data = yaml.safe_load(config_path.read_text())
    assert data["autostart_list"] == ["db"]
    assert data["logging"]["level"] == "INFO"


def test_invalid_yaml_falls_back_to_defaults(config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("refresh_rate: [unclosed\n")
    assert ConfigManager(config_path).config == AppConfig()


def test_non_mapping_falls_back_to_defaults(config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("- just\n- a list\n")
    assert ConfigManager(config_path).config == AppConfig()


def test_unknown_keys_are_ignored(config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("theme: dark\nlog_lines: 250\n")
    cm = ConfigManager(config_path)
    assert cm.config.log_lines == 250
    assert not hasattr(cm.config, "theme")


def test_logging_section(config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("logging:\n  level: debug\n  file_path: /tmp/x.log\n")
    cm = ConfigManager(config_path)
    assert cm.get_log_level() == "DEBUG"
    assert cm.get_custom_log_path() == "/tmp/x.log"
    assert cm.config.logging.max_size_mb == 10


def test_values_are_sanitised(config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("default_view: logs\nrefresh_rate: 5\nlog_lines: 0\nautostart_list: [1, web]\n")
    cm = ConfigManager(config_path)
    assert cm.config.default_view == "containers"
    assert cm.config.refresh_rate == 100
    assert cm.config.log_lines == 1
    assert cm.config.autostart_list == ["1", "web"]


def test_autostart_membership(config_path):
    cm = ConfigManager(config_path)
    cm.add_autostart("web")
    cm.add_autostart("web")
    assert cm.config.autostart_list == ["web"]
    assert cm.is_autostart("web")
    cm.remove_autostart("web")
    cm.remove_autostart("web")
    assert not cm.is_autostart("web")


def test_save_failure_raises(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    cm = ConfigManager(blocker / "config.yaml")
    with pytest.raises(OSError):
        cm.save_config()


def test_default_location(monkeypatch, tmp_path):
    monkeypatch.setattr(config_module.sys, "platform", "linux")
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    assert config_module.get_config_path() == tmp_path / ".config" / "dktop" / "config.yaml"


def test_windows_location(monkeypatch, tmp_path):
    monkeypatch.setattr(config_module.sys, "platform", "win32")
    monkeypatch.setenv("APPDATA", str(tmp_path))
    assert config_module.get_config_dir() == tmp_path / "dktop"

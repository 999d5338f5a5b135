# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for ConfigManager.
"""

import json
import os
from pathlib import Path

import pytest

from config import app_config
from config.app_config import APP_DIR_NAME, ConfigManager, get_default_config_version
from config.__version__ import __version__


def _default_config():
    default_config_path = Path(app_config.__file__).parent / "default_config.json"
    return json.loads(default_config_path.read_text(encoding="utf-8"))


def _write_user_config(tmp_path, config):
    user_config_dir = tmp_path / APP_DIR_NAME
    user_config_dir.mkdir(exist_ok=True)
    user_config_file = user_config_dir / "app_config.json"
    user_config_file.write_text(json.dumps(config, indent=2), encoding="utf-8")
    return user_config_file


def test_config_manager_merges_defaults(tmp_path, monkeypatch):
    monkeypatch.setattr(app_config.Path, "home", lambda: tmp_path)

    partial_config = _default_config()
    partial_config.pop("stats")
    partial_config["playback"].pop("poll_interval")
    partial_config["playback"]["group_size"] = 3
    user_config_file = _write_user_config(tmp_path, partial_config)

    manager = ConfigManager()

    merged = manager.get_all()
    assert merged["stats"]["file_name"] == "stats.json"
    assert merged["playback"]["poll_interval"] == 0.1
    assert manager.get("playback.group_size") == 3

    merged["playback"]["group_size"] = 99
    assert manager.get("playback.group_size") == 3

    defaults = manager.get_defaults()
    assert defaults["playback"]["group_size"] == 1
    with pytest.raises(TypeError):
        defaults["playback"]["group_size"] = 10

    manager.save()

    saved_config = json.loads(user_config_file.read_text(encoding="utf-8"))
    assert saved_config["playback"]["group_size"] == 3
    assert saved_config["stats"]["enabled"] is True


def test_config_manager_without_user_file(tmp_path):
    manager = ConfigManager(app_dir=tmp_path / "app")

    assert manager.get("playback.end_tolerance") == 0.05
    assert manager.get("translation.target_language") == "en"
    assert manager.get("missing.key", "fallback") == "fallback"


def test_config_manager_set_does_not_mutate_defaults(tmp_path):
    manager = ConfigManager(app_dir=tmp_path)

    manager.set("playback.group_size", 4)
    manager.set("translation.api_key", "secret")

    assert manager.get("playback.group_size") == 4
    assert manager.get_defaults()["playback"]["group_size"] == 1
    assert manager.get_defaults()["translation"]["api_key"] == ""


def test_config_manager_reload(tmp_path):
    manager = ConfigManager(app_dir=tmp_path)
    manager.set("playback.group_size", 2)
    manager.save()

    other = ConfigManager(app_dir=tmp_path)
    other.set("playback.group_size", 5)
    other.save()

    manager.reload()
    assert manager.get("playback.group_size") == 5


@pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
def test_config_manager_save_restricts_permissions(tmp_path):
    manager = ConfigManager(app_dir=tmp_path)

    manager.save()

    assert (tmp_path / "app_config.json").stat().st_mode & 0o777 == 0o600


@pytest.mark.parametrize(
    ("section", "field", "value", "expected_exception"),
    [
        ("playback", "group_size", 0, ValueError),
        ("playback", "group_size", True, ValueError),
        ("playback", "group_size", 1.5, ValueError),
        ("playback", "end_tolerance", -0.1, ValueError),
        ("playback", "seek_settle_delay", "fast", ValueError),
        ("playback", "poll_interval", 0, ValueError),
        ("playback", "watchdog_timeout", -1, ValueError),
        ("media", "ad_duration_threshold", -5, ValueError),
        ("logging", "level", "LOUD", ValueError),
    ],
)
def test_config_manager_validates_values(
    tmp_path, monkeypatch, section, field, value, expected_exception
):
    monkeypatch.setattr(app_config.Path, "home", lambda: tmp_path)

    config = _default_config()
    config[section][field] = value
    _write_user_config(tmp_path, config)

    with pytest.raises(expected_exception):
        ConfigManager()


def test_config_manager_rejects_wrong_section_type(tmp_path):
    config = _default_config()
    config["playback"] = [1, 2]
    (tmp_path / "app_config.json").write_text(json.dumps(config), encoding="utf-8")

    with pytest.raises(TypeError):
        ConfigManager(app_dir=tmp_path)


def test_config_manager_invalid_json(tmp_path):
    (tmp_path / "app_config.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(json.JSONDecodeError):
        ConfigManager(app_dir=tmp_path)


def test_default_config_version_matches_package():
    assert get_default_config_version() == __version__

"""
Tests for state persistence and YAML settings.
"""

from pathlib import Path

import yaml

from osc_panel_lib.settings import PanelSettings, load_settings, save_settings
from osc_panel_lib.storage import DEFAULT_STATE_PATH, StateStorage


class TestStateStorage:
    """Test JSON state files."""

    def test_save_and_load(self, tmp_path, sample_state):
        storage = StateStorage(tmp_path / "state.json")
        assert storage.save(sample_state)
        assert storage.load() == sample_state

    def test_creates_parent_directories(self, tmp_path, sample_state):
        storage = StateStorage(tmp_path / "deep" / "dir" / "state.json")
        assert storage.save(sample_state)
        assert storage.path.exists()

    def test_no_temp_files_left(self, tmp_path, sample_state):
        storage = StateStorage(tmp_path / "state.json")
        storage.save(sample_state)
        storage.save(sample_state)
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_stale_temp_file_is_replaced(self, tmp_path, sample_state):
        (tmp_path / "state.tmp").write_text("partial")
        storage = StateStorage(tmp_path / "state.json")
        assert storage.save(sample_state)
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]
        assert storage.load() == sample_state

    def test_missing_file(self, tmp_path):
        assert StateStorage(tmp_path / "nope.json").load() is None

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{ definitely not json", encoding="utf-8")
        assert StateStorage(path).load() is None

    def test_schema_mismatch(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text('{"layouts": [{"controls": 3}]}', encoding="utf-8")
        assert StateStorage(path).load() is None

    def test_default_path(self):
        assert StateStorage().path == DEFAULT_STATE_PATH


class TestSettings:
    """Test YAML settings."""

    def test_defaults_when_missing(self, tmp_path):
        settings = load_settings(tmp_path / "config.yaml")
        assert settings == PanelSettings()

    def test_load(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "host": "10.0.0.2",
            "port": 8000,
            "state_path": str(tmp_path / "s.json"),
            "log_level": "debug",
        }))
        settings = load_settings(path)
        assert settings.host == "10.0.0.2"
        assert settings.port == "8000"
        assert settings.state_path == tmp_path / "s.json"
        assert settings.log_level == "DEBUG"

    def test_partial_file_keeps_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("host: studio.local\n")
        settings = load_settings(path)
        assert settings.host == "studio.local"
        assert settings.port == PanelSettings().port

    def test_non_mapping_is_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        assert load_settings(path) == PanelSettings()

    def test_broken_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("host: [unclosed\n")
        assert load_settings(path) == PanelSettings()

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        settings = PanelSettings(host="h", port="1234", state_path=Path("/tmp/x.json"), log_level="WARNING")
        assert save_settings(settings, path)
        assert load_settings(path) == settings

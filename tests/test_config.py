"""
Test cases for panel configuration
"""
import pytest
from kde_panel.config import DEFAULT_REFRESH_INTERVAL, PanelConfig, load_config

class TestConfig:
    def test_defaults(self, workspace, monkeypatch):
        """Test defaults without a config file"""
        monkeypatch.chdir(workspace)
        monkeypatch.setenv("SHELL", "/bin/zsh")
        monkeypatch.setattr("kde_panel.config.DEFAULT_CONFIG_PATH", f"{workspace}/missing.yaml")
        config = load_config(path=None, binary=None)
        assert config.binary == "kde"
        assert config.workspace == workspace
        assert config.refresh_interval == DEFAULT_REFRESH_INTERVAL
        assert config.shell == "/bin/zsh"
        assert config.terminal is None

    def test_file_and_overrides(self, tmp_path):
        """Test YAML values are used and explicit options win"""
        path = tmp_path / "config.yaml"
        path.write_text("binary: /opt/kde\nrefresh-interval: 30\nterminal: xterm -e\nunknown: 1\n")
        config = load_config(str(path), refresh_interval=5, workspace=str(tmp_path))
        assert config.binary == "/opt/kde"
        assert config.refresh_interval == 5.0
        assert config.terminal == "xterm -e"
        assert config.workspace == str(tmp_path)

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_file_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- kde\n- ls\n")
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_negative_interval(self):
        with pytest.raises(ValueError):
            PanelConfig(refresh_interval=-1)

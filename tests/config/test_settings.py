"""Tests for settings (config.toml)."""

import pytest
from pathlib import Path

from rssh.config.settings import (
    Settings,
    default_config_path,
    default_profiles_path,
    MAX_CHUNK_SIZE,
)
from rssh.exceptions import ConfigError


class TestDefaults:
    """Tests for default paths and values."""

    def test_default_paths_follow_home(self, mock_home_dir):
        """Default paths are computed under the (mocked) home directory."""
        assert default_config_path() == mock_home_dir / ".config" / "rssh" / "config.toml"
        assert default_profiles_path() == mock_home_dir / ".rss_ssh" / "config.json"

    def test_default_values(self, mock_home_dir):
        settings = Settings()
        assert settings.profiles_path == mock_home_dir / ".rss_ssh" / "config.json"
        assert settings.keyring_service == "rssh"
        assert settings.connect_timeout == 10.0
        assert settings.host_key_policy == "auto-add"
        assert settings.known_hosts is None
        assert settings.chunk_size == 32 * 1024
        assert settings.save_passwords is True


class TestSettingsLoad:
    """Tests for Settings.load method."""

    def test_load_from_nonexistent_file(self, tmp_path):
        """Returns defaults if file doesn't exist."""
        result = Settings.load(tmp_path / "nonexistent.toml")
        assert result.keyring_service == "rssh"
        assert result.host_key_policy == "auto-add"

    def test_load_empty_file(self, tmp_path):
        """Returns defaults for empty file."""
        config = tmp_path / "config.toml"
        config.write_text("")
        result = Settings.load(config)
        assert result.chunk_size == 32 * 1024

    def test_load_all_fields(self, tmp_path, monkeypatch):
        """Loads every known field."""
        monkeypatch.setenv("HOME", str(tmp_path))
        config = tmp_path / "config.toml"
        config.write_text(
            """
profiles_path = "~/profiles.json"
keyring_service = "rssh-work"
connect_timeout = 3
host_key_policy = "reject"
known_hosts = "/etc/ssh/extra_known_hosts"
chunk_size = 65536
save_passwords = false
"""
        )
        result = Settings.load(config)

        assert result.profiles_path == tmp_path / "profiles.json"
        assert result.keyring_service == "rssh-work"
        assert result.connect_timeout == 3.0
        assert result.host_key_policy == "reject"
        assert result.known_hosts == Path("/etc/ssh/extra_known_hosts")
        assert result.chunk_size == 65536
        assert result.save_passwords is False

    def test_unknown_fields_warn(self, tmp_path, capsys):
        """Unknown fields produce a warning, not an error."""
        config = tmp_path / "config.toml"
        config.write_text('colour = "blue"\n')
        Settings.load(config)
        captured = capsys.readouterr()
        assert "unknown fields: colour" in captured.err

    def test_invalid_toml(self, tmp_path):
        """Malformed TOML raises ConfigError."""
        config = tmp_path / "config.toml"
        config.write_text("chunk_size = = 3\n")
        with pytest.raises(ConfigError):
            Settings.load(config)

    @pytest.mark.parametrize(
        "line",
        [
            'host_key_policy = "trust-everyone"',
            "connect_timeout = 0",
            'connect_timeout = "10"',
            "chunk_size = 16",
            f"chunk_size = {MAX_CHUNK_SIZE + 1}",
            "chunk_size = true",
            'save_passwords = "yes"',
            'keyring_service = ""',
            "profiles_path = 5",
        ],
    )
    def test_invalid_values(self, tmp_path, line):
        """Invalid values raise ConfigError."""
        config = tmp_path / "config.toml"
        config.write_text(line + "\n")
        with pytest.raises(ConfigError):
            Settings.load(config)

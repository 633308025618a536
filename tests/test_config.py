"""Tests for configuration loading"""

import pytest

from src.core.config import get_settings, load_settings, reset_settings
from src.core.errors import ConfigurationError


@pytest.fixture(autouse=True)
def _in_tmp_dir(tmp_path, monkeypatch):
    """Run away from the repository's own config.yaml"""
    monkeypatch.chdir(tmp_path)


def write_config(path, text):
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:

    def test_defaults(self):
        settings = load_settings()

        assert settings.server.port == 8080
        assert settings.server.max_upload_size == 100 * 1024 * 1024
        assert settings.file.max_name_length == 255
        assert settings.file.forbidden_extensions == [".env", ".exe", ".sh", ".bat"]
        assert settings.file.valid_name_regex == r"^[\w\-. ]+$"
        assert settings.storage.base_path.is_absolute()
        assert settings.messages.not_found == "Not found"

    def test_production_forces_json_logs(self, monkeypatch):
        settings = load_settings()
        assert settings.log_format == "console"

        monkeypatch.setenv("FILEBROWSER_ENVIRONMENT", "production")
        settings = load_settings()
        assert settings.is_production
        assert settings.log_format == "json"


class TestYamlFile:

    def test_explicit_file(self, tmp_path):
        config = write_config(
            tmp_path / "custom.yaml",
            "server:\n"
            "  port: 9000\n"
            "storage:\n"
            "  base_path: /srv/files\n"
            "file:\n"
            "  max_name_length: 64\n"
            "  dir_permissions: '0700'\n"
            "  forbidden_extensions: ['.PHP']\n"
            "messages:\n"
            "  not_found: Nothing here\n",
        )

        settings = load_settings(config)

        assert settings.server.port == 9000
        assert str(settings.storage.base_path) == "/srv/files"
        assert settings.file.max_name_length == 64
        assert settings.file.dir_permissions == 0o700
        assert settings.file.forbidden_extensions == [".php"]
        assert settings.messages.not_found == "Nothing here"

    def test_default_file_in_working_directory(self, tmp_path):
        write_config(tmp_path / "config.yaml", "server:\n  port: 9100\n")
        assert load_settings().server.port == 9100

    def test_environment_overrides_default_file(self, tmp_path, monkeypatch):
        write_config(tmp_path / "config.yaml", "server:\n  port: 9100\n")
        monkeypatch.setenv("FILEBROWSER_SERVER__PORT", "9200")
        assert load_settings().server.port == 9200

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(tmp_path / "absent.yaml")
        assert "failed to read" in exc_info.value.message

    def test_malformed_yaml(self, tmp_path):
        config = write_config(tmp_path / "bad.yaml", "server: [unclosed\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(config)
        assert "failed to parse" in exc_info.value.message

    def test_non_mapping(self, tmp_path):
        config = write_config(tmp_path / "list.yaml", "- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_settings(config)

    def test_empty_file_uses_defaults(self, tmp_path):
        config = write_config(tmp_path / "empty.yaml", "")
        assert load_settings(config).server.port == 8080


class TestValidation:

    @pytest.mark.parametrize(
        "text",
        [
            "server:\n  port: 0\n",
            "server:\n  port: 70000\n",
            "server:\n  max_upload_size: 0\n",
            "file:\n  max_name_length: -1\n",
            "file:\n  valid_name_regex: ''\n",
            "file:\n  valid_name_regex: '[unclosed'\n",
        ],
    )
    def test_invalid_values(self, tmp_path, text):
        config = write_config(tmp_path / "invalid.yaml", text)
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(config)
        assert exc_info.value.details["errors"]


class TestCachedSettings:

    def test_get_settings_reads_config_env(self, tmp_path, monkeypatch):
        config = write_config(tmp_path / "env.yaml", "server:\n  port: 9300\n")
        monkeypatch.setenv("FILEBROWSER_CONFIG", str(config))

        assert get_settings().server.port == 9300
        assert get_settings() is get_settings()

    def test_reset_settings(self):
        first = get_settings()
        reset_settings()
        assert get_settings() is not first

"""Tests for YAML configuration loading and environment overrides."""

from __future__ import annotations

from pathlib import Path

import pydantic
import pytest
import yaml

from config import Settings, get_settings, load_config

ENV_VARS = [
    "CONFIG_PATH", "GITHUB_SECRET", "WEBHOOK_API_KEY", "PARENT_DIR", "LOG_DB_PATH", "DEBUG",
    "SLACK_WEBHOOK_URL", "EMAIL_USERNAME", "EMAIL_PASSWORD", "SMTP_SERVER", "SMTP_PORT", "EMAIL_USE_TLS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # A stray config.yaml in the working directory must not leak into these tests
    monkeypatch.chdir(tmp_path)


def _write(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data))
    return path


class TestLoadConfig:
    def test_missing_default_file_gives_defaults(self) -> None:
        assert load_config() == {}

    def test_missing_explicit_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_missing_config_path_env_raises(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "nope.yaml"))
        with pytest.raises(FileNotFoundError):
            load_config()

    def test_reads_yaml(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "c.yaml", {"parent_dir": "/srv/", "folder_suffix": ""})
        assert load_config(str(path)) == {"parent_dir": "/srv/", "folder_suffix": ""}

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "c.yaml"
        path.write_text("")
        assert load_config(str(path)) == {}

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "c.yaml"
        path.write_text("parent_dir: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_config(str(path))

    def test_default_file_in_working_directory(self, tmp_path: Path) -> None:
        _write(tmp_path / "config.yaml", {"port": 9000})
        assert load_config() == {"port": 9000}


class TestGetSettings:
    def test_defaults(self) -> None:
        settings = get_settings()
        assert settings == Settings()
        assert settings.parent_dir == "/var/www/"
        assert settings.folder_suffix == ".linu.sk"
        assert settings.build_file == "Makefile"
        assert settings.pull_command == ["git", "pull"]
        assert settings.build_command == ["make", "build"]
        assert settings.command_timeout is None
        assert settings.port == 8010

    def test_yaml_values(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "c.yaml", {
            "github_secret": "from-yaml",
            "build_command": ["make", "all"],
            "command_timeout": 120,
            "notifications": {"slack_webhook_url": "https://hooks.slack.test/x"},
        })
        settings = get_settings(str(path))
        assert settings.github_secret == "from-yaml"
        assert settings.build_command == ["make", "all"]
        assert settings.command_timeout == 120
        assert settings.notifications.slack_webhook_url == "https://hooks.slack.test/x"
        assert settings.notifications.email is None

    def test_environment_overrides_yaml(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        path = _write(tmp_path / "c.yaml", {"github_secret": "from-yaml", "notifications": {"email": {
            "smtp_server": "smtp.yaml.test", "recipients": ["ops@example.com"],
        }}})
        monkeypatch.setenv("GITHUB_SECRET", "from-env")
        monkeypatch.setenv("WEBHOOK_API_KEY", "key")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("EMAIL_PASSWORD", "pw")
        monkeypatch.setenv("SMTP_PORT", "465")
        monkeypatch.setenv("EMAIL_USE_TLS", "false")

        settings = get_settings(str(path))

        assert settings.github_secret == "from-env"
        assert settings.api_key == "key"
        assert settings.debug is True
        email = settings.notifications.email
        assert email is not None
        assert email.smtp_server == "smtp.yaml.test"
        assert email.password == "pw"
        assert email.smtp_port == 465
        assert email.use_tls is False
        assert email.recipients == ["ops@example.com"]

    def test_secret_not_logged(self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
        monkeypatch.setenv("GITHUB_SECRET", "super-secret-value")
        with caplog.at_level("DEBUG"):
            get_settings()
        assert "super-secret-value" not in caplog.text

    def test_missing_secret_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("ERROR"):
            get_settings()
        assert "GITHUB_SECRET is not configured" in caplog.text

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "c.yaml", {"port": "not-a-port"})
        with pytest.raises(pydantic.ValidationError):
            get_settings(str(path))

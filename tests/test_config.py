import json
from pathlib import Path

import pytest
from unittest.mock import patch

from logalert.config.settings import (
    POSIX_STORAGE_ROOT,
    AppConfig,
    load_config,
    resolve_storage_root,
)
from logalert.errors import ConfigError

VALID = {
    "minutesToSleep": "5",
    "smtpAddress": "mail.example.com",
    "smtpPort": "25",
    "smtpSender": "logalert@example.com",
    "logLocations": [
        {
            "fileLocation": "/var/log/app-{{{yyyyMMdd}}}.log",
            "smtpRecipients": ["ops@example.com"],
            "searchTerms": ["error"],
            "ignoreTerms": ["error: transient"],
        }
    ],
}


def write_config(tmp_path, data, name="config.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


def test_load_valid_config(tmp_path):
    config = load_config(write_config(tmp_path, VALID))

    assert config.minutesToSleep == 5
    assert config.smtpPort == 25
    assert config.sleep_seconds == 300
    assert config.smtpTimeout == 60
    location = config.logLocations[0]
    assert location.searchTerms == ["error"]
    assert location.ignoreTerms == ["error: transient"]


def test_ignore_terms_default_to_empty(tmp_path):
    data = json.loads(json.dumps(VALID))
    del data["logLocations"][0]["ignoreTerms"]
    config = load_config(write_config(tmp_path, data))
    assert config.logLocations[0].ignoreTerms == []


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.json")


def test_invalid_json(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, "{not json"))


def test_non_object_json(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, "[1, 2]"))


@pytest.mark.parametrize("minutes", ["abc", "0", -3])
def test_bad_sleep_interval(tmp_path, minutes):
    data = dict(VALID, minutesToSleep=minutes)
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, data))


def test_target_needs_a_recipient(tmp_path):
    data = json.loads(json.dumps(VALID))
    data["logLocations"][0]["smtpRecipients"] = []
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, data))


def test_password_from_environment(monkeypatch):
    config = AppConfig.model_validate(dict(VALID, smtpPassword="from-config"))
    assert config.smtp_password() == "from-config"
    monkeypatch.setenv("LOGALERT_SMTP_PASSWORD", "from-env")
    assert config.smtp_password() == "from-env"


class TestStorageRoot:

    def test_environment_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LOGALERT_STORAGE_ROOT", str(tmp_path))
        config = AppConfig.model_validate(dict(VALID, storageRoot="/elsewhere"))
        assert resolve_storage_root(config) == tmp_path

    def test_config_value(self, monkeypatch):
        monkeypatch.delenv("LOGALERT_STORAGE_ROOT", raising=False)
        config = AppConfig.model_validate(dict(VALID, storageRoot="/srv/logalert"))
        assert resolve_storage_root(config) == Path("/srv/logalert")

    def test_posix_default(self, monkeypatch):
        monkeypatch.delenv("LOGALERT_STORAGE_ROOT", raising=False)
        with patch("logalert.config.settings.platform.system", return_value="Linux"):
            assert resolve_storage_root() == Path(POSIX_STORAGE_ROOT)

    def test_windows_default(self, monkeypatch):
        monkeypatch.delenv("LOGALERT_STORAGE_ROOT", raising=False)
        with patch("logalert.config.settings.platform.system", return_value="Windows"):
            assert resolve_storage_root() == Path(".")

import json
from dataclasses import replace

import pytest

from camkeeper.config import Config
from camkeeper.credentials import load_client_secrets, load_nas_credentials, load_refresh_token
from camkeeper.errors import ConfigError


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("CAMKEEPER_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("NAS_API_URL", "http://nas:5000/webapi")
    monkeypatch.setenv("CAMKEEPER_VISIBILITY", "Unlisted")
    monkeypatch.setenv("CAMKEEPER_NETWORK_TESTS", "5")
    monkeypatch.setenv("CAMKEEPER_BOUNCE_ON_STREAM_DOWN", "yes")
    config = Config.from_env()

    assert config.state_dir == str(tmp_path)
    assert config.desired_visibility == "unlisted"
    assert config.network_tests == 5
    assert config.bounce_on_stream_down is True
    assert config.max_comeback_retries == 40
    assert config.path("camkeeper-sunrise") == str(tmp_path / "camkeeper-sunrise")


def test_bad_integer_is_config_error(monkeypatch):
    monkeypatch.setenv("CAMKEEPER_MAX_SEGMENT", "twelve hours")
    with pytest.raises(ConfigError):
        Config.from_env()


def write_credentials(tmp_path):
    (tmp_path / "client_id.json").write_text(json.dumps({'installed': {'client_id': 'cid', 'client_secret': 'cs'}}))
    (tmp_path / "camkeeper-tokens").write_text("refresh-token\n")


def test_validate_accepts_complete_config(config, tmp_path):
    write_credentials(tmp_path)
    config.validate()


@pytest.mark.parametrize("change", [
    {'nas_url': ''},
    {'desired_visibility': 'secret'},
    {'split_mode': 'sometimes'},
    {'stream_probe': 'download', 'youtube_url': ''},
    {'network_tests': 0},
    {'short_bounce_seconds': 0},
])
def test_validate_rejects(config, tmp_path, change):
    write_credentials(tmp_path)
    with pytest.raises(ConfigError):
        replace(config, **change).validate()


def test_validate_requires_credential_files(config):
    with pytest.raises(ConfigError):
        config.validate()


def test_load_client_secrets(tmp_path):
    write_credentials(tmp_path)
    assert load_client_secrets(str(tmp_path / "client_id.json")) == ('cid', 'cs')
    assert load_refresh_token(str(tmp_path / "camkeeper-tokens")) == "refresh-token"


def test_client_secrets_without_secret(tmp_path):
    path = tmp_path / "client_id.json"
    path.write_text(json.dumps({'web': {'client_id': 'cid'}}))
    with pytest.raises(ConfigError):
        load_client_secrets(str(path))


def test_nas_credentials_from_file_or_env(config, tmp_path):
    (tmp_path / "api-creds").write_text("admin hunter2\n")
    assert load_nas_credentials(config) == ("admin", "hunter2")
    assert load_nas_credentials(replace(config, nas_username="u", nas_password="p")) == ("u", "p")


def test_nas_credentials_missing(config):
    with pytest.raises(ConfigError):
        load_nas_credentials(config)

"""Tests for loading settings."""

import pytest
import yaml

from spamguard.config import Settings, load_settings
from spamguard.exceptions import ConfigurationError


def test_defaults(tmp_path):
    settings = load_settings(tmp_path / "missing.yaml", environ={})
    assert settings == Settings()
    assert not settings.active
    assert settings.skip_trust_level == 1
    assert settings.max_check_attempts == 5


def test_yaml_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"spamguard": {"enabled": True, "api_key": "abc", "skip_posts": 10}}))
    settings = load_settings(path, environ={})
    assert settings.active
    assert settings.skip_posts == 10


def test_flat_yaml_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("notify_user: false\nrequest_timeout: 2.5\n")
    settings = load_settings(path, environ={})
    assert settings.notify_user is False
    assert settings.request_timeout == 2.5


def test_environment_overrides_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("api_key: from-file\nenabled: false\n")
    settings = load_settings(
        path, environ={"SPAMGUARD_API_KEY": "from-env", "SPAMGUARD_ENABLED": "yes"}
    )
    assert settings.api_key == "from-env"
    assert settings.enabled is True


def test_config_path_from_environment(tmp_path):
    path = tmp_path / "elsewhere.yaml"
    path.write_text("base_url: https://forum.example\n")
    settings = load_settings(environ={"SPAMGUARD_CONFIG": str(path)})
    assert settings.base_url == "https://forum.example"


@pytest.mark.parametrize(
    "env",
    [
        {"SPAMGUARD_ENABLED": "maybe"},
        {"SPAMGUARD_SKIP_POSTS": "lots"},
        {"SPAMGUARD_SKIP_TRUST_LEVEL": "7"},
        {"SPAMGUARD_MAX_CHECK_ATTEMPTS": "0"},
        {"SPAMGUARD_REQUEST_TIMEOUT": "-1"},
    ],
)
def test_invalid_values(tmp_path, env):
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "missing.yaml", environ=env)


def test_malformed_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigurationError):
        load_settings(path, environ={})

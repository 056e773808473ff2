"""Tests for session configuration loading and validation."""

import pytest

from kernelframe.config import config_from_env, default_config, load_config, validate_config


def test_defaults():
    config = config_from_env({})

    assert config == default_config()
    assert config["endpoint"] == "http://127.0.0.1:8998"
    assert config["kind"] == "eclair"


def test_environment_overrides():
    config = config_from_env({
        "KERNELFRAME_HOST": "spark.internal",
        "KERNELFRAME_PORT": "443",
        "KERNELFRAME_SCHEME": "https",
        "KERNELFRAME_KIND": "spark",
        "KERNELFRAME_TIMEOUT": "5",
    })

    assert config["endpoint"] == "https://spark.internal:443"
    assert config["kind"] == "spark"
    assert config["timeout"] == 5.0


def test_yaml_file_layered_over_environment(tmp_path):
    path = tmp_path / "session.yaml"
    path.write_text("endpoint: http://kernel:8998/\npoll_interval: 0.5\n")

    config = load_config(path, {"KERNELFRAME_KIND": "spark"})

    assert config["endpoint"] == "http://kernel:8998"
    assert config["poll_interval"] == 0.5
    assert config["kind"] == "spark"


def test_empty_yaml_file_uses_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert load_config(path, {}) == default_config()


def test_yaml_must_be_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")

    with pytest.raises(ValueError, match="mapping"):
        load_config(path, {})


def test_unknown_keys_rejected(tmp_path):
    path = tmp_path / "typo.yaml"
    path.write_text("endpiont: http://x\n")

    with pytest.raises(ValueError, match="endpiont"):
        load_config(path, {})


@pytest.mark.parametrize("key", ["timeout", "poll_interval", "startup_timeout"])
def test_non_positive_durations_rejected(key):
    config = dict(default_config())
    config[key] = 0

    with pytest.raises(ValueError, match=key):
        validate_config(config)


def test_null_duration_in_yaml_rejected(tmp_path):
    path = tmp_path / "null.yaml"
    path.write_text("timeout: null\n")

    with pytest.raises(ValueError, match="timeout"):
        load_config(path, {})


def test_endpoint_must_be_http():
    config = dict(default_config())
    config["endpoint"] = "ws://kernel:8888"

    with pytest.raises(ValueError, match="http"):
        validate_config(config)

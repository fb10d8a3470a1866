import argparse
import os
from unittest.mock import patch

import pytest
import yaml

from review_rescue.config import RescueConfig
from review_rescue.exceptions import ConfigurationError


def make_args(**overrides) -> argparse.Namespace:
    values = {
        "token": None,
        "repo": "owner/repo",
        "pr": "42",
        "save": None,
        "load": None,
        "config": None,
        "countdown": None,
        "no_verify": False,
        "base_url": None,
        "log_level": None,
        "log_format": None,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


def write_settings(tmp_path, data) -> str:
    path = tmp_path / "rescue.yml"
    path.write_text(yaml.dump(data))
    return str(path)


@pytest.mark.parametrize(
    "name,value,message",
    [
        ("RESCUE_COUNTDOWN", "ten", "Invalid integer value for RESCUE_COUNTDOWN"),
        ("RESCUE_MAX_RETRIES", "3.14", "Invalid integer value for RESCUE_MAX_RETRIES"),
        (
            "RESCUE_BACKOFF_FACTOR",
            "not.a.float",
            "Invalid float value for RESCUE_BACKOFF_FACTOR",
        ),
    ],
)
def test_should_raise_error_when_env_vars_contain_invalid_numbers(
    name, value, message
) -> None:
    environ = {"GITHUB_TOKEN": "test_token", name: value}

    with pytest.raises(ConfigurationError, match=message):
        RescueConfig.from_args(make_args(), environ=environ)


def test_should_use_defaults_when_env_vars_are_empty_strings() -> None:
    environ = {
        "GITHUB_TOKEN": "test_token",
        "RESCUE_COUNTDOWN": "",
        "RESCUE_MAX_RETRIES": "",
        "RESCUE_BACKOFF_FACTOR": "",
        "RESCUE_LOG_LEVEL": "",
    }

    config = RescueConfig.from_args(make_args(), environ=environ)

    assert config.countdown_seconds == 10
    assert config.max_retries == 5
    assert config.backoff_factor == 1.0
    assert config.log_level == "INFO"


def test_should_detect_unexpanded_env_vars_in_token(tmp_path) -> None:
    path = write_settings(
        tmp_path, {"authentication": {"token": "${UNDEFINED_RESCUE_TOKEN}"}}
    )

    with patch.dict(os.environ, {}, clear=True):
        with pytest.raises(
            ConfigurationError,
            match="Token configuration error: Environment variable not found",
        ):
            RescueConfig.from_args(make_args(config=path), environ={})

    path = write_settings(
        tmp_path, {"authentication": {"token": "prefix_${UNDEFINED}_suffix"}}
    )

    with patch.dict(os.environ, {}, clear=True):
        with pytest.raises(
            ConfigurationError,
            match="Token configuration error: Environment variable not found",
        ):
            RescueConfig.from_args(make_args(config=path), environ={})


def test_should_handle_special_characters_in_expanded_token(tmp_path) -> None:
    path = write_settings(tmp_path, {"authentication": {"token": "${SPECIAL_TOKEN}"}})
    special_token = "ghp_abc123!@#$%^&*()_+-=[]{}|;:',.<>?/~`"

    with patch.dict(os.environ, {"SPECIAL_TOKEN": special_token}):
        config = RescueConfig.from_args(make_args(config=path), environ={})

    assert config.token == special_token


def test_should_accept_zero_countdown_and_retries() -> None:
    environ = {
        "GITHUB_TOKEN": "test_token",
        "RESCUE_COUNTDOWN": "0",
        "RESCUE_MAX_RETRIES": "0",
        "RESCUE_BACKOFF_FACTOR": "0.0",
    }

    config = RescueConfig.from_args(make_args(), environ=environ)

    assert config.countdown_seconds == 0
    assert config.max_retries == 0
    assert config.backoff_factor == 0.0


def test_should_reject_negative_countdown_flag() -> None:
    with pytest.raises(ConfigurationError, match="countdown must be non-negative"):
        RescueConfig.from_args(
            make_args(countdown=-1), environ={"GITHUB_TOKEN": "test_token"}
        )


def test_should_strip_whitespace_around_repo_and_pr() -> None:
    config = RescueConfig.from_args(
        make_args(repo="  owner/repo ", pr=" 42 "),
        environ={"GITHUB_TOKEN": "test_token"},
    )

    assert config.repo_identifier == "owner/repo"
    assert config.pr_number == 42


@pytest.mark.parametrize("pr", ["0", "-3", "99999999999"])
def test_should_reject_pr_numbers_out_of_range(pr) -> None:
    with pytest.raises(
        ConfigurationError, match="No valid repository and PR number provided"
    ):
        RescueConfig.from_args(
            make_args(pr=pr), environ={"GITHUB_TOKEN": "test_token"}
        )


def test_should_reject_settings_file_with_wrong_extension(tmp_path) -> None:
    path = tmp_path / "rescue.json"
    path.write_text("{}")

    with pytest.raises(ConfigurationError, match=".yaml or .yml"):
        RescueConfig.from_args(
            make_args(config=str(path)), environ={"GITHUB_TOKEN": "test_token"}
        )


def test_should_reject_settings_file_that_is_not_a_mapping(tmp_path) -> None:
    path = write_settings(tmp_path, ["a", "b"])

    with pytest.raises(ConfigurationError, match="must contain a mapping"):
        RescueConfig.from_args(
            make_args(config=path), environ={"GITHUB_TOKEN": "test_token"}
        )


@pytest.mark.parametrize("value", ["false", "no", 0, 1, None])
def test_should_reject_non_boolean_verify_setting(tmp_path, value) -> None:
    path = write_settings(
        tmp_path,
        {"authentication": {"token": "test_token"}, "verify_before_delete": value},
    )

    with pytest.raises(ConfigurationError, match="Invalid boolean value"):
        RescueConfig.from_args(make_args(config=path), environ={})


def test_should_read_log_settings_from_environment_and_file(tmp_path) -> None:
    path = write_settings(
        tmp_path,
        {
            "authentication": {"token": "test_token"},
            "logging": {"level": "warning", "format": "json"},
        },
    )

    from_file = RescueConfig.from_args(make_args(config=path), environ={})
    from_env = RescueConfig.from_args(
        make_args(config=path),
        environ={"RESCUE_LOG_LEVEL": "debug", "RESCUE_LOG_FORMAT": "TEXT"},
    )

    assert (from_file.log_level, from_file.log_format) == ("WARNING", "json")
    assert (from_env.log_level, from_env.log_format) == ("DEBUG", "text")


@pytest.mark.parametrize(
    "name,value,message",
    [
        ("RESCUE_LOG_LEVEL", "loud", "Invalid log level"),
        ("RESCUE_LOG_FORMAT", "xml", "Invalid log format"),
    ],
)
def test_should_reject_unknown_log_settings(name, value, message) -> None:
    with pytest.raises(ConfigurationError, match=message):
        RescueConfig.from_args(
            make_args(), environ={"GITHUB_TOKEN": "test_token", name: value}
        )

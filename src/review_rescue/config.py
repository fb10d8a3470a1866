import argparse
from collections.abc import Mapping
from dataclasses import dataclass
import os
from pathlib import Path
import re
from typing import Any

import yaml

from review_rescue.exceptions import ConfigurationError
from review_rescue.security import SecurityValidator


ENV_VAR_PATTERN = r"\$\{[^}]+\}|\$[A-Za-z_][A-Za-z0-9_]*(?![A-Za-z0-9_])"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("json", "text")


@dataclass(frozen=True)
class RescueConfig:
    org: str
    repo: str
    pr_number: int
    token: str
    save_path: Path | None = None
    load_path: Path | None = None
    base_url: str | None = None
    max_retries: int = 5
    backoff_factor: float = 1.0
    max_wait: float = 60.0
    countdown_seconds: int = 10
    verify_before_delete: bool = True
    per_page: int = 100
    log_level: str = "INFO"
    log_format: str = "text"

    @property
    def repo_identifier(self) -> str:
        return f"{self.org}/{self.repo}"

    @staticmethod
    def _safe_parse_int(value: Any, name: str, default: int) -> int:
        if value is None or value == "":
            return default
        try:
            return int(value)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Invalid integer value for {name}: '{value}'. Must be a valid integer."
            ) from e

    @staticmethod
    def _safe_parse_float(value: Any, name: str, default: float) -> float:
        if value is None or value == "":
            return default
        try:
            return float(value)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Invalid float value for {name}: '{value}'. Must be a valid number."
            ) from e

    def __post_init__(self) -> None:
        if not self.org or not self.repo:
            raise ConfigurationError("Repository is required")
        if self.pr_number <= 0:
            raise ConfigurationError("PR number must be positive")
        if not self.token:
            raise ConfigurationError("No GitHub token provided")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be non-negative")
        if self.backoff_factor < 0:
            raise ConfigurationError("backoff_factor must be non-negative")
        if self.max_wait < 0:
            raise ConfigurationError("max_wait must be non-negative")
        if self.countdown_seconds < 0:
            raise ConfigurationError("countdown must be non-negative")
        if self.per_page <= 0:
            raise ConfigurationError("per_page must be positive")
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: '{self.log_level}'. "
                f"Must be one of {', '.join(LOG_LEVELS)}"
            )
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"Invalid log format: '{self.log_format}'. Must be json or text"
            )

    @classmethod
    def from_args(
        cls, args: argparse.Namespace, environ: Mapping[str, str] | None = None
    ) -> "RescueConfig":
        env = os.environ if environ is None else environ
        config_path = getattr(args, "config", None)
        settings = load_settings_file(config_path) if config_path else {}

        repo_arg = getattr(args, "repo", None)
        pr_arg = getattr(args, "pr", None)
        if repo_arg is None or pr_arg is None:
            raise ConfigurationError("No repository and PR number provided")
        try:
            org, repo = SecurityValidator.validate_repo(str(repo_arg))
            pr_number = SecurityValidator.validate_pr_number(pr_arg)
        except ValueError as e:
            raise ConfigurationError(
                f"No valid repository and PR number provided: {e}"
            ) from e

        token = getattr(args, "token", None) or env.get("GITHUB_TOKEN") or settings.get(
            "token"
        )
        if not token:
            raise ConfigurationError("No GitHub token provided")

        save = getattr(args, "save", None)
        load = getattr(args, "load", None)

        countdown = getattr(args, "countdown", None)
        if countdown is None:
            countdown = cls._safe_parse_int(
                env.get("RESCUE_COUNTDOWN"),
                "RESCUE_COUNTDOWN",
                settings.get("countdown_seconds", 10),
            )

        verify = settings.get("verify_before_delete", True)
        if getattr(args, "no_verify", False):
            verify = False

        return cls(
            org=org,
            repo=repo,
            pr_number=pr_number,
            token=token,
            save_path=Path(save) if save else None,
            load_path=Path(load) if load else None,
            base_url=getattr(args, "base_url", None)
            or env.get("GITHUB_BASE_URL")
            or settings.get("base_url"),
            max_retries=cls._safe_parse_int(
                env.get("RESCUE_MAX_RETRIES"),
                "RESCUE_MAX_RETRIES",
                settings.get("max_retries", 5),
            ),
            backoff_factor=cls._safe_parse_float(
                env.get("RESCUE_BACKOFF_FACTOR"),
                "RESCUE_BACKOFF_FACTOR",
                settings.get("backoff_factor", 1.0),
            ),
            max_wait=cls._safe_parse_float(
                settings.get("max_wait"), "retry.max_wait", 60.0
            ),
            countdown_seconds=countdown,
            verify_before_delete=bool(verify),
            log_level=str(
                getattr(args, "log_level", None)
                or env.get("RESCUE_LOG_LEVEL")
                or settings.get("log_level", "INFO")
            ).upper(),
            log_format=str(
                getattr(args, "log_format", None)
                or env.get("RESCUE_LOG_FORMAT")
                or settings.get("log_format", "text")
            ).lower(),
        )


def load_settings_file(path: str | Path) -> dict[str, Any]:
    """Read optional run settings from a YAML file.

    Example::

        authentication:
          token: ${GITHUB_TOKEN}
        base_url: https://github.example.com/api/v3
        countdown: 5
        verify_before_delete: true
        retry:
          max_attempts: 5
          backoff_factor: 1.0
          max_wait: 60
        logging:
          level: DEBUG
          format: json
    """
    config_path = SecurityValidator.validate_config_path(str(path))

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e

    if not data:
        raise ConfigurationError("Configuration file is empty")
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must contain a mapping")

    settings: dict[str, Any] = {}

    token = (data.get("authentication") or {}).get("token")
    if token:
        if re.search(ENV_VAR_PATTERN, token):
            expanded_token = os.path.expandvars(token)
            if re.search(ENV_VAR_PATTERN, expanded_token):
                # Don't reveal the token value in error message
                raise ConfigurationError(
                    "Token configuration error: Environment variable not found"
                )
            token = expanded_token
        settings["token"] = token

    if data.get("base_url"):
        settings["base_url"] = data["base_url"]
    if "countdown" in data:
        settings["countdown_seconds"] = RescueConfig._safe_parse_int(
            data["countdown"], "countdown", 10
        )
    if "verify_before_delete" in data:
        verify = data["verify_before_delete"]
        if not isinstance(verify, bool):
            raise ConfigurationError(
                f"Invalid boolean value for verify_before_delete: '{verify}'. "
                "Must be true or false."
            )
        settings["verify_before_delete"] = verify

    retry = data.get("retry") or {}
    if "max_attempts" in retry:
        settings["max_retries"] = RescueConfig._safe_parse_int(
            retry["max_attempts"], "retry.max_attempts", 5
        )
    if "backoff_factor" in retry:
        settings["backoff_factor"] = RescueConfig._safe_parse_float(
            retry["backoff_factor"], "retry.backoff_factor", 1.0
        )
    if "max_wait" in retry:
        settings["max_wait"] = retry["max_wait"]

    logging = data.get("logging") or {}
    if "level" in logging:
        settings["log_level"] = logging["level"]
    if "format" in logging:
        settings["log_format"] = logging["format"]

    return settings

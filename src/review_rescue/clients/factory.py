import re
from typing import Any, Protocol
from urllib.parse import urlparse

from review_rescue.client import ReviewClient
from review_rescue.clients.mixins.retry import MAX_ALLOWED_RETRIES, RetryPolicy
from review_rescue.exceptions import AuthenticationError


class ClientConfig(Protocol):
    @property
    def token(self) -> str: ...
    @property
    def repo_identifier(self) -> str: ...
    @property
    def base_url(self) -> str | None: ...
    @property
    def logger(self) -> Any | None: ...
    @property
    def max_retries(self) -> int: ...
    @property
    def backoff_factor(self) -> float: ...
    @property
    def max_wait(self) -> float: ...
    @property
    def per_page(self) -> int: ...


class ClientCreationError(Exception):
    pass


class GitHubClientFactory:
    _REPO_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+/[a-zA-Z0-9_.-]+$")
    _TOKEN_PREFIXES = ("ghp_", "gho_", "ghu_", "ghs_", "github_pat_")
    _LEGACY_TOKEN_PATTERN = re.compile(r"^[0-9a-f]{40}$")
    _FORBIDDEN_HOSTS = {
        "localhost",
        "127.0.0.1",
        "0.0.0.0",  # nosec B104 - Used for SSRF prevention, not binding
        "169.254.169.254",
        "::1",
        "[::1]",
    }

    @staticmethod
    def _validate_token(token: str) -> None:
        if not token:
            raise AuthenticationError("Invalid token: empty token")

        if len(token) < 20:
            raise AuthenticationError("Invalid token: too short")

        if not token.startswith(GitHubClientFactory._TOKEN_PREFIXES):
            if not GitHubClientFactory._LEGACY_TOKEN_PATTERN.match(token):
                raise AuthenticationError(
                    "Invalid GitHub token format. "
                    "Expected format: ghp_*, gho_*, ghu_*, ghs_* or github_pat_*"
                )

    @staticmethod
    def _validate_repo_identifier(repo_identifier: str) -> None:
        if not repo_identifier:
            raise ValueError("repo_identifier cannot be empty")

        dangerous_patterns = ["../", "..", "//", "\\", "\n", "\r", ";", "&", "|", "$"]
        for pattern in dangerous_patterns:
            if pattern in repo_identifier:
                raise ValueError(
                    f"Invalid repo_identifier: contains dangerous pattern '{pattern}'"
                )

        if not GitHubClientFactory._REPO_PATTERN.match(repo_identifier):
            raise ValueError(
                f"Invalid GitHub repo format: {repo_identifier}. "
                f"Expected format: owner/repo"
            )

    @staticmethod
    def _validate_base_url(base_url: str | None) -> None:
        if not base_url:
            return

        try:
            parsed = urlparse(base_url)

            if parsed.scheme not in ("http", "https"):
                raise ValueError(f"Invalid URL scheme: {parsed.scheme}")

            if not parsed.netloc:
                raise ValueError("Invalid URL: missing host")

            hostname = parsed.hostname
            if hostname and hostname.lower() in GitHubClientFactory._FORBIDDEN_HOSTS:
                raise ValueError(
                    f"Access to host '{hostname}' is not allowed for security reasons"
                )

            if hostname and hostname.startswith("10."):
                raise ValueError("Access to private network (10.x.x.x) not allowed")
            if hostname and hostname.startswith("192.168."):
                raise ValueError("Access to private network (192.168.x.x) not allowed")
            if hostname and hostname.startswith("172."):
                octets = hostname.split(".")
                if len(octets) >= 2 and 16 <= int(octets[1]) <= 31:
                    raise ValueError(
                        "Access to private network (172.16-31.x.x) not allowed"
                    )

        except ValueError:
            raise
        except Exception as e:
            raise ValueError(f"Invalid base_url: {e}") from e

    @staticmethod
    def _validate_numeric_params(config: ClientConfig) -> None:
        if not (0 <= config.max_retries <= MAX_ALLOWED_RETRIES):
            raise ValueError(
                f"max_retries out of bounds: {config.max_retries}. "
                f"Must be between 0 and {MAX_ALLOWED_RETRIES}"
            )

        if not (0.0 <= config.backoff_factor <= 5.0):
            raise ValueError(
                f"backoff_factor out of bounds: {config.backoff_factor}. "
                f"Must be between 0.0 and 5.0"
            )

        if not (1 <= config.per_page <= 100):
            raise ValueError(
                f"per_page out of bounds: {config.per_page}. Must be between 1 and 100"
            )

    @staticmethod
    def _validate_config(config: ClientConfig) -> None:
        GitHubClientFactory._validate_token(config.token)
        GitHubClientFactory._validate_repo_identifier(config.repo_identifier)
        GitHubClientFactory._validate_base_url(config.base_url)
        GitHubClientFactory._validate_numeric_params(config)

    @staticmethod
    def create(config: ClientConfig) -> ReviewClient:
        GitHubClientFactory._validate_config(config)

        policy = RetryPolicy(
            max_retries=config.max_retries,
            backoff_factor=config.backoff_factor,
            max_wait=config.max_wait,
        )

        try:
            from review_rescue.clients.github_client import GitHubReviewClient

            return GitHubReviewClient(
                token=config.token,
                repo_identifier=config.repo_identifier,
                base_url=config.base_url,
                logger=config.logger,
                retry_policy=policy,
                per_page=config.per_page,
            )
        except ImportError as e:
            raise ClientCreationError(
                f"Failed to import GitHub client: {e}. "
                f"Ensure the required dependencies are installed."
            ) from e
        except (AuthenticationError, ValueError):
            raise
        except Exception as e:
            raise ClientCreationError(f"Failed to create GitHub client: {e}") from e

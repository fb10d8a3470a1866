from collections.abc import Callable, Iterator
from dataclasses import replace
import re
import time
from typing import Any, TypeVar

from github import (
    Auth,
    BadCredentialsException,
    Github,
    GithubException,
    RateLimitExceededException,
    UnknownObjectException,
)
from github.PullRequest import PullRequest
import requests

from review_rescue.adapters.github_mapper import GitHubMapper
from review_rescue.clients.base import BaseReviewClient
from review_rescue.clients.mixins.pagination import PaginationMixin
from review_rescue.clients.mixins.retry import RetryMixin, RetryPolicy
from review_rescue.exceptions import (
    APIError,
    AuthenticationError,
    CommentPostError,
    NetworkError,
    RateLimitError,
    RescueException,
    ResourceNotFoundError,
    TimeoutError,
)
from review_rescue.logger import get_logger
from review_rescue.models import Comment, Review, User


R = TypeVar("R")


class GitHubReviewClient(BaseReviewClient[Github], RetryMixin, PaginationMixin):
    def __init__(
        self,
        token: str,
        repo_identifier: str,
        base_url: str | None = None,
        logger: Any | None = None,
        retry_policy: RetryPolicy | None = None,
        per_page: int = 100,
    ) -> None:
        self._validate_repo_identifier(repo_identifier)
        auth = Auth.Token(token)
        # Retries are handled by RetryMixin with the injected policy.
        client = Github(
            auth=auth,
            base_url=base_url or "https://api.github.com",
            per_page=min(per_page, 100),
            retry=None,
        )
        logger = logger or get_logger(self.__class__.__name__)
        super().__init__(
            client=client,
            repo_identifier=repo_identifier,
            logger=logger,
        )
        self.retry_policy = retry_policy or RetryPolicy()
        self.per_page = min(per_page, 100)
        self.mapper = GitHubMapper()

    @staticmethod
    def _validate_repo_identifier(identifier: str) -> None:
        """Validate repository identifier format."""
        pattern = r"^[a-zA-Z0-9\-_.]+/[a-zA-Z0-9\-_.]+$"
        if not re.match(pattern, identifier):
            raise ValueError("Invalid repository identifier format")

    @staticmethod
    def _validate_pr_number(pr_number: int) -> int:
        try:
            pr_int = int(pr_number)
        except (ValueError, TypeError) as e:
            raise ResourceNotFoundError("Invalid PR number") from e
        if pr_int <= 0:
            raise ResourceNotFoundError("Invalid PR number")
        return pr_int

    @staticmethod
    def _header(headers: dict[str, Any] | None, name: str) -> str | None:
        for key, value in (headers or {}).items():
            if key.lower() == name:
                return str(value)
        return None

    @classmethod
    def _reset_time(cls, headers: dict[str, Any] | None) -> float | None:
        """Seconds to wait before the rate limit resets, if GitHub told us."""
        retry_after = cls._header(headers, "retry-after")
        if retry_after is not None:
            try:
                return max(float(retry_after), 0.0)
            except ValueError:
                pass
        reset = cls._header(headers, "x-ratelimit-reset")
        if reset is not None:
            try:
                return max(float(reset) - time.time(), 0.0)
            except ValueError:
                pass
        return None

    @staticmethod
    def _is_secondary_rate_limit(error: GithubException) -> bool:
        if error.status not in (403, 429):
            return False
        text = str(error.data).lower()
        return "secondary rate limit" in text or "abuse" in text

    def _translate_error(self, error: Exception, context: str) -> RescueException:
        if isinstance(error, RescueException):
            return error
        if isinstance(error, BadCredentialsException):
            return AuthenticationError(f"Authentication failed during {context}", error)
        if isinstance(error, UnknownObjectException):
            return ResourceNotFoundError(f"Resource not found during {context}", error)
        if isinstance(error, RateLimitExceededException) or (
            isinstance(error, GithubException) and self._is_secondary_rate_limit(error)
        ):
            return RateLimitError(
                self._reset_time(error.headers),
                f"Rate limit exceeded during {context}",
                error,
            )
        if isinstance(error, GithubException):
            return APIError(
                status_code=error.status,
                message=f"GitHub API error {error.status} during {context}",
                cause=error,
            )
        if isinstance(error, requests.exceptions.Timeout):
            return TimeoutError(f"Request timed out during {context}", error)
        if isinstance(error, requests.exceptions.ConnectionError):
            return NetworkError(f"Network error during {context}", error)
        return APIError(message=f"Operation failed during {context}", cause=error)

    def _call(
        self, context: str, func: Callable[[], R], policy: RetryPolicy | None = None
    ) -> R:
        def attempt() -> R:
            try:
                return func()
            except Exception as e:
                raise self._translate_error(e, context) from e

        attempt.__name__ = context.replace(" ", "_")
        return self.with_retry(attempt, policy)()  # type: ignore[no-any-return]

    def _load_repository(self) -> Any:
        return self._call(
            "repository loading", lambda: self.client.get_repo(self.repo_identifier)
        )

    def _load_pull(self, pr_number: int) -> PullRequest:
        pr_int = self._validate_pr_number(pr_number)
        return self._call("pull request lookup", lambda: self.repo.get_pull(pr_int))

    def get_authenticated_user(self) -> User:
        user = self._call("user lookup", lambda: self.client.get_user())
        # AuthenticatedUser is lazy; reading the id triggers the request.
        return self._call("user lookup", lambda: self.mapper.to_user(user))

    def list_reviews(self, pr_number: int) -> Iterator[Review]:
        pr = self.pull(pr_number)
        reviews: list[Review] = self._call(
            "review listing",
            lambda: [
                self.mapper.to_review(review)
                for review in self.paginate_github(pr.get_reviews())
            ],
        )
        self.logger.debug(f"Fetched {len(reviews)} reviews for PR {pr_number}")
        return iter(reviews)

    def list_review_comments(self, pr_number: int, review_id: int) -> list[Comment]:
        pr = self.pull(pr_number)
        comments: list[Comment] = self._call(
            "review comment listing",
            lambda: [
                self.mapper.to_comment(comment)
                for comment in self.paginate_github(
                    pr.get_single_review_comments(review_id)
                )
            ],
        )
        self.logger.debug(f"Fetched {len(comments)} comments for review {review_id}")
        return comments

    def delete_pending_review(self, pr_number: int, review_id: int) -> None:
        pr = self.pull(pr_number)
        self._call(
            "review deletion",
            lambda: self.client.requester.requestJsonAndCheck(
                "DELETE", f"{pr.url}/reviews/{review_id}"
            ),
        )
        self.logger.info(f"Deleted pending review {review_id} on PR {pr_number}")

    def _post_policy(self) -> RetryPolicy:
        # A POST is resent only after a rate limit rejection.
        return replace(self.retry_policy, retry_on=(RateLimitError,))

    def create_review_comment(
        self,
        pr_number: int,
        commit_id: str,
        path: str,
        position: int | None,
        body: str,
    ) -> int:
        payload: dict[str, Any] = {"body": body, "commit_id": commit_id, "path": path}
        if position is not None:
            payload["position"] = position
        try:
            pr = self.pull(pr_number)
            _, data = self._call(
                "comment posting",
                lambda: self.client.requester.requestJsonAndCheck(
                    "POST", f"{pr.url}/comments", input=payload
                ),
                self._post_policy(),
            )
        except RescueException as e:
            raise CommentPostError(e.message or str(e), e) from e
        try:
            return int(data["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise CommentPostError("Comment posted but no id was returned", e) from e

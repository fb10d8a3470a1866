from typing import Any

from github.AuthenticatedUser import AuthenticatedUser
from github.PullRequestComment import PullRequestComment
from github.PullRequestReview import PullRequestReview

from review_rescue.models import Comment, Review, User


class GitHubMapper:
    @staticmethod
    def to_user(user: AuthenticatedUser) -> User:
        try:
            return User(id=user.id, login=user.login)
        except AttributeError as e:
            raise ValueError(f"Invalid GitHub user data: {e}") from e

    @staticmethod
    def to_review(review: PullRequestReview) -> Review:
        try:
            return Review(
                id=review.id,
                author_id=review.user.id if review.user else None,
                state=review.state,
            )
        except AttributeError as e:
            raise ValueError(f"Invalid GitHub review data: {e}") from e

    @staticmethod
    def to_comment(comment: PullRequestComment) -> Comment:
        try:
            raw = comment.raw_data
        except AttributeError as e:
            raise ValueError(f"Invalid GitHub review comment data: {e}") from e
        return GitHubMapper.to_comment_from_payload(raw)

    @staticmethod
    def to_comment_from_payload(payload: dict[str, Any]) -> Comment:
        if not isinstance(payload, dict):
            raise ValueError("Invalid GitHub review comment data: not an object")
        return Comment.from_dict(payload)

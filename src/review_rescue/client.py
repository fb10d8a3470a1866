from abc import ABC, abstractmethod
from collections.abc import Iterator

from review_rescue.models import Comment, Review, User


class ReviewClient(ABC):
    @abstractmethod
    def get_authenticated_user(self) -> User:
        raise NotImplementedError

    @abstractmethod
    def list_reviews(self, pr_number: int) -> Iterator[Review]:
        raise NotImplementedError

    @abstractmethod
    def list_review_comments(self, pr_number: int, review_id: int) -> list[Comment]:
        raise NotImplementedError

    @abstractmethod
    def delete_pending_review(self, pr_number: int, review_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def create_review_comment(
        self,
        pr_number: int,
        commit_id: str,
        path: str,
        position: int | None,
        body: str,
    ) -> int:
        raise NotImplementedError

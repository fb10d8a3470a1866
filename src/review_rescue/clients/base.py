from abc import ABC
from typing import Any, Generic, TypeVar

from review_rescue.client import ReviewClient
from review_rescue.logger import get_logger


T = TypeVar("T")


class BaseReviewClient(ReviewClient, Generic[T], ABC):
    def __init__(
        self,
        client: T,
        repo_identifier: str,
        logger: Any | None = None,
    ) -> None:
        super().__init__()
        self.client = client
        self.repo_identifier = repo_identifier
        self.logger = logger or get_logger(self.__class__.__name__)
        self._repo: Any = None
        self._pulls: dict[int, Any] = {}

    @property
    def repo(self) -> Any:
        if self._repo is None:
            self._repo = self._load_repository()
        return self._repo

    def _load_repository(self) -> Any:
        raise NotImplementedError

    def _load_pull(self, pr_number: int) -> Any:
        raise NotImplementedError

    def pull(self, pr_number: int) -> Any:
        if pr_number not in self._pulls:
            self._pulls[pr_number] = self._load_pull(pr_number)
        return self._pulls[pr_number]

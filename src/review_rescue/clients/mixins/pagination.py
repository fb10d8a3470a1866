from collections.abc import Generator, Iterable
from typing import Any

from review_rescue.logger import get_logger


class PaginationMixin:
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._pagination_logger = get_logger(
            f"{self.__class__.__name__}.PaginationMixin"
        )

    def paginate_github(
        self, paginated_list: Iterable[Any]
    ) -> Generator[Any, None, None]:
        """
        Paginate through a PyGithub PaginatedList.

        Pages are requested lazily by PyGithub as iteration advances and the
        listing is always read to the end.

        Args:
            paginated_list: PyGithub PaginatedList object

        Yields:
            Individual items from the paginated list
        """
        count = 0
        for item in paginated_list:
            yield item
            count += 1

        self._pagination_logger.debug(f"Pagination complete. Total items: {count}")

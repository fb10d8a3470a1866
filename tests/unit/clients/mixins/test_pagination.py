from review_rescue.clients.mixins.pagination import PaginationMixin


class PaginationTestHelper(PaginationMixin):
    def __init__(self) -> None:
        super().__init__()


def test_should_paginate_github_list_when_paginate_github_called() -> None:
    instance = PaginationTestHelper()

    mock_paginated_list = ["item1", "item2", "item3", "item4", "item5"]

    results = list(instance.paginate_github(mock_paginated_list))

    assert results == mock_paginated_list


def test_should_yield_every_item_of_a_long_listing() -> None:
    instance = PaginationTestHelper()

    results = list(instance.paginate_github(iter(range(5000))))

    assert len(results) == 5000


def test_should_consume_pages_lazily() -> None:
    instance = PaginationTestHelper()
    fetched: list[int] = []

    def pages():
        for page in range(1, 4):
            fetched.append(page)
            yield from [f"p{page}-a", f"p{page}-b"]

    iterator = instance.paginate_github(pages())
    assert next(iterator) == "p1-a"
    assert fetched == [1]

    assert list(iterator) == ["p1-b", "p2-a", "p2-b", "p3-a", "p3-b"]
    assert fetched == [1, 2, 3]

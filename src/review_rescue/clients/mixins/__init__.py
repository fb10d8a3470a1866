from review_rescue.clients.mixins.pagination import PaginationMixin
from review_rescue.clients.mixins.retry import RetryMixin, RetryPolicy


__all__ = ["PaginationMixin", "RetryMixin", "RetryPolicy"]

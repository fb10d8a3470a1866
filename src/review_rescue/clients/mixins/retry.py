from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from tenacity import (
    RetryCallState,
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
)

from review_rescue.exceptions import NetworkError, RateLimitError, TimeoutError
from review_rescue.logger import get_logger


MAX_ALLOWED_RETRIES = 10


@dataclass(frozen=True)
class RetryPolicy:
    """How a client retries rate-limited and transient failures.

    ``max_retries`` counts retries after the first attempt, so a policy with
    ``max_retries=5`` makes at most six calls.
    """

    max_retries: int = 5
    backoff_factor: float = 1.0
    max_wait: float = 60.0
    jitter: bool = True
    retry_on: tuple[type[Exception], ...] = (
        RateLimitError,
        NetworkError,
        TimeoutError,
    )

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.backoff_factor < 0:
            raise ValueError("backoff_factor cannot be negative")
        if self.max_wait < 0:
            raise ValueError("max_wait cannot be negative")


class RetryMixin:
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._retry_logger = get_logger(f"{self.__class__.__name__}.RetryMixin")

    def with_retry(
        self, func: Callable[..., Any], policy: RetryPolicy | None = None
    ) -> Callable[..., Any]:
        if policy is None:
            policy = getattr(self, "retry_policy", None) or RetryPolicy()

        effective_max_retries = min(policy.max_retries, MAX_ALLOWED_RETRIES)
        if policy.max_retries > MAX_ALLOWED_RETRIES:
            self._retry_logger.warning(
                f"max_retries capped at {MAX_ALLOWED_RETRIES} "
                f"(was {policy.max_retries})"
            )
        name = getattr(func, "__name__", repr(func))

        def wait_strategy(retry_state: RetryCallState) -> float:
            if retry_state.outcome and retry_state.outcome.failed:
                exception = retry_state.outcome.exception()

                if isinstance(exception, RateLimitError) and exception.reset_time:
                    wait_time = min(exception.reset_time, policy.max_wait)
                    self._retry_logger.warning(
                        f"Rate limit hit. Retrying after {wait_time}s."
                    )
                    return wait_time

            if policy.jitter:
                wait_func = wait_exponential_jitter(
                    initial=policy.backoff_factor,
                    max=policy.max_wait,
                    jitter=policy.backoff_factor,
                )
                return wait_func(retry_state)

            exponent = max(retry_state.attempt_number - 1, 0)
            return float(min(policy.backoff_factor * (2**exponent), policy.max_wait))

        def should_retry(retry_state: RetryCallState) -> bool:
            if not retry_state.outcome or not retry_state.outcome.failed:
                return False

            exception = retry_state.outcome.exception()

            if not isinstance(exception, policy.retry_on):
                self._retry_logger.debug(f"Non-retryable error in {name}: {exception}")
                return False

            attempt = retry_state.attempt_number
            if attempt <= effective_max_retries:
                self._retry_logger.warning(
                    f"Attempt {attempt}/{effective_max_retries + 1} of {name} "
                    f"failed: {exception}"
                )
            return True

        retry_decorator = retry(
            stop=stop_after_attempt(effective_max_retries + 1),
            wait=wait_strategy,
            retry=should_retry,
            reraise=True,
        )

        return retry_decorator(func)

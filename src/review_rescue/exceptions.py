class RescueException(Exception):
    fatal = True

    def __init__(self, message: str = "", cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class OperatorError(RescueException):
    """Bad input or an ambiguous state the operator has to resolve."""


class OperationalError(RescueException):
    """Network, API or filesystem failure."""


class ConfigurationError(OperatorError):
    pass


class SecurityError(OperatorError):
    pass


class AmbiguousReviewError(OperatorError):
    pass


class NoRecoverySourceError(OperatorError):
    pass


class AuthenticationError(OperationalError):
    pass


class ResourceNotFoundError(OperationalError):
    pass


class RateLimitError(OperationalError):
    def __init__(
        self,
        reset_time: float | None = None,
        message: str = "",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.reset_time = reset_time


class APIError(OperationalError):
    def __init__(
        self,
        status_code: int | None = None,
        message: str = "",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.status_code = status_code


class NetworkError(OperationalError):
    pass


class TimeoutError(OperationalError):
    pass


class IdentityError(OperationalError):
    pass


class ReviewLookupError(OperationalError):
    pass


class CommentFetchError(OperationalError):
    pass


class SnapshotWriteError(OperationalError):
    pass


class SnapshotLoadError(OperationalError):
    pass


class DismantleError(OperationalError):
    pass


class ReviewStateChangedError(OperationalError):
    pass


class CommentPostError(OperationalError):
    fatal = False

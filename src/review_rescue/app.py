from collections.abc import Callable
import logging
import sys
import time
from typing import Any, TextIO

from review_rescue.client import ReviewClient
from review_rescue.clients.factory import GitHubClientFactory
from review_rescue.config import RescueConfig
from review_rescue.exceptions import (
    AmbiguousReviewError,
    CommentFetchError,
    CommentPostError,
    DismantleError,
    IdentityError,
    NoRecoverySourceError,
    RescueException,
    ReviewLookupError,
    ReviewStateChangedError,
)
from review_rescue.logger import get_logger
from review_rescue.models import Comment, ReplayReport, RescueResult, Review, User
from review_rescue.security import SecurityValidator
from review_rescue.snapshot import SnapshotStore


logger = get_logger("app")


def countdown(
    message: str,
    seconds: int,
    sleep: Callable[[float], None] = time.sleep,
    stream: TextIO | None = None,
) -> None:
    """Print ``message`` followed by a ticking ``n.. n-1.. 1..`` countdown."""
    out = stream or sys.stdout
    if seconds <= 0:
        return
    out.write(message + " ")
    for remaining in range(seconds, 0, -1):
        out.write(str(remaining))
        out.flush()
        for tick in (".", ".", " "):
            sleep(0.25)
            out.write(tick)
            out.flush()
        sleep(0.25)
    out.write("\n")
    out.flush()


class ConfigAdapter:
    def __init__(self, rescue_config: RescueConfig):
        self._config = rescue_config

    @property
    def token(self) -> str:
        return self._config.token

    @property
    def repo_identifier(self) -> str:
        return self._config.repo_identifier

    @property
    def base_url(self) -> str | None:
        return self._config.base_url

    @property
    def logger(self) -> Any | None:
        logger = logging.getLogger("review_rescue")
        logger.setLevel(self._config.log_level)
        return logger

    @property
    def max_retries(self) -> int:
        return self._config.max_retries

    @property
    def backoff_factor(self) -> float:
        return self._config.backoff_factor

    @property
    def max_wait(self) -> float:
        return self._config.max_wait

    @property
    def per_page(self) -> int:
        return self._config.per_page


class RescueApplication:
    """Recover the comments of a pending review that cannot be submitted.

    The phases run strictly in order: resolve the caller, find their pending
    review, save its comments, delete the review, then repost each comment.
    Anything that fails before the delete aborts the run. Failures while
    reposting a single comment are logged and the batch continues.
    """

    def __init__(
        self,
        config: RescueConfig,
        client: ReviewClient | None = None,
        sleep: Callable[[float], None] = time.sleep,
        stream: TextIO | None = None,
    ):
        self.config = config
        self._client = client
        self._sleep = sleep
        self._stream = stream

    @property
    def client(self) -> ReviewClient:
        if self._client is None:
            adapter = ConfigAdapter(self.config)
            self._client = GitHubClientFactory.create(adapter)
        return self._client

    @property
    def pr_number(self) -> int:
        return self.config.pr_number

    def resolve_identity(self) -> User:
        logger.info("Fetching user info")
        try:
            user = self.client.get_authenticated_user()
        except RescueException as e:
            raise IdentityError("Failed to fetch user info", e) from e
        logger.info(f"We are '{user.login}' ({user.id})")
        return user

    def locate_pending_review(self, user: User) -> Review | None:
        logger.info(f"Fetching list of reviews for PR {self.pr_number}")
        found: Review | None = None
        try:
            # Every page is read so a second pending review is always noticed.
            for review in self.client.list_reviews(self.pr_number):
                if not review.is_pending_by(user):
                    continue
                if found is not None:
                    raise AmbiguousReviewError(
                        f"More than one pending review by '{user.login}' on PR "
                        f"{self.pr_number} ({found.id}, {review.id})"
                    )
                found = review
        except AmbiguousReviewError:
            raise
        except RescueException as e:
            raise ReviewLookupError(
                f"Failed to fetch list of reviews for PR {self.pr_number}", e
            ) from e

        if found is not None:
            logger.info(f"Found a pending review from us: {found.id}")
        else:
            logger.info(f"No pending review from us on PR {self.pr_number}")
        return found

    def resolve_snapshot_path(self, review: Review | None) -> SnapshotStore:
        if self.config.save_path is not None:
            path = self.config.save_path
        elif self.config.load_path is not None:
            # The review-derived name holds the backup of the replaced review.
            path = self.config.load_path
        elif review is not None:
            path = SnapshotStore.default_path(
                self.config.org, self.config.repo, self.pr_number, review.id
            )
        else:
            path = SnapshotStore.default_path(
                self.config.org, self.config.repo, self.pr_number, None
            )
        return SnapshotStore(SecurityValidator.validate_snapshot_path(path))

    def snapshot_comments(self, review: Review, store: SnapshotStore) -> list[Comment]:
        logger.info(f"Fetching a list of comments for the review {review.id}")
        try:
            comments = self.client.list_review_comments(self.pr_number, review.id)
        except RescueException as e:
            raise CommentFetchError(
                f"Failed to fetch a list of comments for the review {review.id}", e
            ) from e

        store.save(comments)
        return comments

    def _backup_pending_review(self, review: Review) -> SnapshotStore:
        """Save the comments of a review that is about to be deleted while
        replaying a different snapshot file."""
        path = SecurityValidator.validate_snapshot_path(
            SnapshotStore.default_path(
                self.config.org, self.config.repo, self.pr_number, review.id
            )
        )
        backup = SnapshotStore(path)
        load_path = self.config.load_path
        if load_path is not None and path == load_path.resolve():
            logger.info(f"Pending review {review.id} is already recorded in {path}")
            return backup
        self.snapshot_comments(review, backup)
        return backup

    def _verify_still_pending(self, review: Review, user: User) -> None:
        current = self.locate_pending_review(user)
        if current is None or current.id != review.id:
            raise ReviewStateChangedError(
                f"Review {review.id} is no longer our pending review, not deleting it"
            )

    def dismantle_review(
        self, review: Review, store: SnapshotStore, user: User | None = None
    ) -> None:
        logger.warning(
            "The current pending review will be dismissed, "
            "removing all the pending comments"
        )
        logger.warning(
            "This is a destructive but necessary action, because it is impossible "
            "to post comments on a PR with a pending review"
        )
        logger.warning(
            f"The comments have also been saved to {store.path} and can be loaded "
            "from it, in case something goes wrong"
        )
        countdown(
            f"Dismissing review {review.id} in",
            self.config.countdown_seconds,
            sleep=self._sleep,
            stream=self._stream,
        )

        if self.config.verify_before_delete and user is not None:
            self._verify_still_pending(review, user)

        try:
            self.client.delete_pending_review(self.pr_number, review.id)
        except RescueException as e:
            raise DismantleError(f"Failed to dismiss review {review.id}", e) from e
        logger.info(f"Dismissed review {review.id}")

    def replay_comments(
        self, comments: list[Comment], store: SnapshotStore
    ) -> ReplayReport:
        """Post every comment without a ``new_id`` as a standalone comment.

        ``comments`` is updated in place and the snapshot is rewritten after
        each attempt and once more at the end of the pass.
        """
        report = ReplayReport()
        logger.info(
            f"Will be posting {len(comments)} pending review comments "
            "as regular comments"
        )
        for index, comment in enumerate(comments):
            if comment.is_posted:
                logger.info(
                    f"Skipping an already posted comment for {comment.short_ref}"
                )
                report.skipped += 1
                continue

            logger.info(f"Posting a comment for {comment.short_ref}")
            try:
                new_id = self.client.create_review_comment(
                    self.pr_number,
                    commit_id=comment.commit_id,
                    path=comment.path,
                    position=comment.position,
                    body=comment.body,
                )
            except CommentPostError as e:
                logger.warning(f"Failed: {SecurityValidator.sanitize_error_message(e)}")
                report.failed_ids.append(comment.id)
                store.save(comments)
                continue

            logger.info(f"Posted, new id: {new_id}")
            comments[index] = comment.with_new_id(new_id)
            report.posted += 1
            store.save(comments)

        # Re-save to keep track of already posted comments
        store.save(comments)
        logger.info(
            f"Replay finished: {report.posted} posted, {report.skipped} skipped, "
            f"{report.failed} failed"
        )
        if report.failed:
            logger.warning(
                f"Run again with --load={store.path} to retry the failed comments"
            )
        return report

    def run(self) -> RescueResult:
        user = self.resolve_identity()
        review = self.locate_pending_review(user)

        store = self.resolve_snapshot_path(review)
        backup = store

        if self.config.load_path is not None:
            if review is not None:
                backup = self._backup_pending_review(review)
            comments = SnapshotStore(self.config.load_path).load()
        elif review is not None:
            comments = self.snapshot_comments(review, store)
        else:
            raise NoRecoverySourceError(
                f"No pending review for PR {self.pr_number} and no --load option "
                "specified"
            )

        if review is not None:
            self.dismantle_review(review, backup, user)

        report = self.replay_comments(comments, store)
        return RescueResult(
            review_id=review.id if review is not None else None,
            snapshot_path=store.path,
            report=report,
        )
"""Durable storage for the comments of a pending review.

Once the pending review is deleted the snapshot file is the only remaining
copy of its comments, so every write goes through a temporary file in the same
directory and is moved into place with ``os.replace``.
"""

from collections.abc import Sequence
import json
import os
from pathlib import Path
import tempfile

from review_rescue.exceptions import SnapshotLoadError, SnapshotWriteError
from review_rescue.logger import get_logger
from review_rescue.models import Comment


class SnapshotStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def default_path(
        org: str, repo: str, pr_number: int, review_id: int | None
    ) -> Path:
        suffix = review_id if review_id is not None else "sync"
        return Path(f"{org}_{repo}_{pr_number}_{suffix}.json")

    def save(self, comments: Sequence[Comment]) -> None:
        self.logger.info(f"Saving comments into a file {self.path}")
        tmp_name: str | None = None
        try:
            payload = json.dumps([comment.to_dict() for comment in comments], indent=2)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            raise SnapshotWriteError("Failed to save comments into a file", e) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        self.logger.info(f"Saved {len(comments)} comments")

    def load(self) -> list[Comment]:
        self.logger.info(f"Loading comments from file '{self.path}'")
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise SnapshotLoadError(
                f"Failed to load comments from file '{self.path}'", e
            ) from e

        if not isinstance(data, list):
            raise SnapshotLoadError(
                f"Failed to load comments from file '{self.path}': expected a list"
            )
        try:
            comments = [Comment.from_dict(item) for item in data]
        except ValueError as e:
            raise SnapshotLoadError(
                f"Failed to load comments from file '{self.path}'", e
            ) from e

        self.logger.info(f"Loaded {len(comments)} comments")
        return comments

from dataclasses import dataclass, field, replace
from enum import StrEnum
from pathlib import Path
from typing import Any


class ReviewState(StrEnum):
    PENDING = "PENDING"
    COMMENTED = "COMMENTED"
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    DISMISSED = "DISMISSED"


@dataclass(frozen=True)
class User:
    id: int
    login: str


@dataclass(frozen=True)
class Review:
    id: int
    author_id: int | None
    state: str

    def is_pending_by(self, user: User) -> bool:
        return self.state == ReviewState.PENDING and self.author_id == user.id


COMMENT_FIELDS = ("id", "commit_id", "path", "position", "body", "new_id")


@dataclass(frozen=True)
class Comment:
    """A review comment as stored in the snapshot file.

    ``new_id`` is set once the comment has been reposted as a standalone
    comment. ``extra`` carries every other field the API returned so that the
    snapshot round-trips without loss.
    """

    id: int
    commit_id: str
    path: str
    position: int | None
    body: str
    new_id: int | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_posted(self) -> bool:
        return self.new_id is not None

    @property
    def short_ref(self) -> str:
        return f"{self.commit_id[:7]} {self.path}:{self.position} ({self.id})"

    def with_new_id(self, new_id: int) -> "Comment":
        return replace(self, new_id=new_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Comment":
        try:
            comment = cls(
                id=data["id"],
                commit_id=data["commit_id"],
                path=data["path"],
                position=data.get("position"),
                body=data["body"],
                new_id=data.get("new_id"),
                extra={k: v for k, v in data.items() if k not in COMMENT_FIELDS},
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid comment data: {e}") from e

        for name in ("commit_id", "path", "body"):
            if not isinstance(getattr(comment, name), str):
                raise ValueError(f"Invalid comment data: '{name}' must be a string")
        for name in ("id", "position", "new_id"):
            value = getattr(comment, name)
            if name != "id" and value is None:
                continue
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"Invalid comment data: '{name}' must be an integer")
        if "new_id" in data and data["new_id"] is None:
            # Kept so an unposted entry is written back unchanged.
            comment.extra["new_id"] = None
        return comment

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data.update(
            id=self.id,
            commit_id=self.commit_id,
            path=self.path,
            position=self.position,
            body=self.body,
        )
        if self.new_id is not None:
            data["new_id"] = self.new_id
        return data


@dataclass
class ReplayReport:
    posted: int = 0
    skipped: int = 0
    failed_ids: list[int] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failed_ids)

    @property
    def total(self) -> int:
        return self.posted + self.skipped + self.failed


@dataclass(frozen=True)
class RescueResult:
    review_id: int | None
    snapshot_path: Path
    report: ReplayReport

"""Pydantic models for Azure DevOps pull request payloads."""

from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class HostModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class Vote(IntEnum):
    approved = 10
    approved_with_suggestions = 5
    no_vote = 0
    waiting_for_author = -5
    rejected = -10


class ThreadStatus(str, Enum):
    unknown = "unknown"
    active = "active"
    pending = "pending"
    fixed = "fixed"
    wont_fix = "wontFix"
    by_design = "byDesign"
    closed = "closed"


OPEN_THREAD_STATUSES = frozenset({ThreadStatus.active, ThreadStatus.pending})


class CommentType(str, Enum):
    unknown = "unknown"
    text = "text"
    code_change = "codeChange"
    system = "system"


class Identity(HostModel):
    id: str
    display_name: str


class Repository(HostModel):
    id: str
    name: str


class Reviewer(HostModel):
    id: str
    display_name: str = ""
    vote: int = Vote.no_vote
    has_declined: bool = False


class PullRequest(HostModel):
    pull_request_id: int
    title: str = ""
    repository: Repository
    is_draft: bool = False
    reviewers: list[Reviewer] = Field(default_factory=list)
    creation_date: datetime | None = None
    closed_date: datetime | None = None


class Comment(HostModel):
    id: int | None = None
    comment_type: CommentType = CommentType.unknown
    content: str | None = None


class CommentThread(HostModel):
    id: int
    status: ThreadStatus = ThreadStatus.unknown
    is_deleted: bool = False
    published_date: datetime
    comments: list[Comment] = Field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return not self.is_deleted and self.status in OPEN_THREAD_STATUSES


class PullRequestIteration(HostModel):
    id: int
    updated_date: datetime


__all__ = [
    "Comment",
    "CommentThread",
    "CommentType",
    "HostModel",
    "Identity",
    "OPEN_THREAD_STATUSES",
    "PullRequest",
    "PullRequestIteration",
    "Repository",
    "Reviewer",
    "ThreadStatus",
    "Vote",
]

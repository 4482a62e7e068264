from datetime import datetime, timezone

import pytest

from pr_mate.schemas import (
    Comment,
    CommentThread,
    CommentType,
    Identity,
    PullRequest,
    PullRequestIteration,
    Repository,
    Reviewer,
    ThreadStatus,
)

ME = Identity(id="me", display_name="Jo Reviewer")


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 5, 1, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def identity() -> Identity:
    return ME


@pytest.fixture
def make_pr():
    def factory(
        pr_id: int = 1,
        vote: int = 0,
        declined: bool = False,
        draft: bool = False,
        repository: Repository | None = None,
        reviewers: list[Reviewer] | None = None,
    ) -> PullRequest:
        if reviewers is None:
            reviewers = [
                Reviewer(id="someone-else", display_name="Sam", vote=10),
                Reviewer(id=ME.id, display_name=ME.display_name, vote=vote, has_declined=declined),
            ]
        return PullRequest(
            pull_request_id=pr_id,
            title=f"PR {pr_id}",
            repository=repository or Repository(id="repo-1", name="web"),
            is_draft=draft,
            reviewers=reviewers,
        )

    return factory


@pytest.fixture
def make_thread():
    def factory(
        thread_id: int = 1,
        status: ThreadStatus = ThreadStatus.active,
        deleted: bool = False,
        published: datetime | None = None,
        content: str = "Please rename",
        comment_type: CommentType = CommentType.text,
    ) -> CommentThread:
        return CommentThread(
            id=thread_id,
            status=status,
            is_deleted=deleted,
            published_date=published or at(9),
            comments=[Comment(id=1, comment_type=comment_type, content=content)],
        )

    return factory


@pytest.fixture
def make_iteration():
    def factory(iteration_id: int, updated: datetime) -> PullRequestIteration:
        return PullRequestIteration(id=iteration_id, updated_date=updated)

    return factory

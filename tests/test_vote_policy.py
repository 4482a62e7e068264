from datetime import datetime, timezone

import pytest

from pr_mate.config import ClearWaitingForAuthorMode
from pr_mate.errors import HostError, TransientHostError, VoteUpdateError
from pr_mate.schemas import CommentType, Reviewer, ThreadStatus
from pr_mate.vote_policy import (
    VoteClearPolicy,
    all_threads_resolved,
    find_vote_marker,
    updated_since_vote,
    vote_marker,
)


class FakeHost:
    def __init__(self, threads=None, iterations=None, vote_error=None, threads_error=None):
        self.threads = threads or {}
        self.iterations = iterations or {}
        self.vote_error = vote_error
        self.threads_error = threads_error
        self.votes: list[tuple[str, int, str, int]] = []

    async def list_threads(self, repository_id, pull_request_id):
        if self.threads_error is not None:
            raise self.threads_error
        return self.threads.get(pull_request_id, [])

    async def list_iterations(self, repository_id, pull_request_id):
        return self.iterations.get(pull_request_id, [])

    async def set_review_vote(self, repository_id, pull_request_id, reviewer_id, vote):
        self.votes.append((repository_id, pull_request_id, reviewer_id, int(vote)))
        if self.vote_error is not None:
            raise self.vote_error


def at(hour: int) -> datetime:
    return datetime(2024, 5, 1, hour, tzinfo=timezone.utc)


def marker(make_thread, published, thread_id=10):
    return make_thread(
        thread_id=thread_id,
        status=ThreadStatus.unknown,
        published=published,
        content=vote_marker("Jo Reviewer"),
        comment_type=CommentType.system,
    )


def test_vote_marker_text():
    assert vote_marker("Jo Reviewer") == "Jo Reviewer voted -5"


def test_no_threads_are_resolved():
    assert all_threads_resolved([]) is True


def test_active_thread_blocks_clear(make_thread):
    assert all_threads_resolved([make_thread(status=ThreadStatus.active)]) is False
    assert all_threads_resolved([make_thread(status=ThreadStatus.pending)]) is False


def test_deleted_active_thread_is_ignored(make_thread):
    assert all_threads_resolved([make_thread(status=ThreadStatus.active, deleted=True)]) is True


@pytest.mark.parametrize(
    "status",
    [ThreadStatus.fixed, ThreadStatus.closed, ThreadStatus.wont_fix, ThreadStatus.by_design, ThreadStatus.unknown],
)
def test_resolved_statuses(make_thread, status):
    assert all_threads_resolved([make_thread(status=status)]) is True


def test_updated_after_vote(make_thread, make_iteration):
    threads = [marker(make_thread, at(9))]
    iterations = [make_iteration(1, at(8)), make_iteration(2, at(10))]
    assert updated_since_vote(iterations, threads, "Jo Reviewer") is True


def test_updated_before_vote(make_thread, make_iteration):
    threads = [marker(make_thread, at(11))]
    iterations = [make_iteration(1, at(10))]
    assert updated_since_vote(iterations, threads, "Jo Reviewer") is False


def test_same_instant_is_not_later(make_thread, make_iteration):
    assert updated_since_vote([make_iteration(1, at(9))], [marker(make_thread, at(9))], "Jo Reviewer") is False


def test_missing_marker_is_not_clearable(make_thread, make_iteration):
    threads = [make_thread(content="Jo Reviewer voted -5", comment_type=CommentType.text)]
    assert updated_since_vote([make_iteration(1, at(12))], threads, "Jo Reviewer") is False


def test_no_iterations_is_not_clearable(make_thread):
    assert updated_since_vote([], [marker(make_thread, at(9))], "Jo Reviewer") is False


def test_newest_marker_wins(make_thread, make_iteration):
    threads = [marker(make_thread, at(8), thread_id=1), marker(make_thread, at(11), thread_id=2)]
    assert find_vote_marker(threads, "Jo Reviewer").id == 2
    assert updated_since_vote([make_iteration(1, at(10))], threads, "Jo Reviewer") is False


def test_marker_for_other_reviewer_ignored(make_thread):
    other = make_thread(content="Sam voted -5", comment_type=CommentType.system)
    assert find_vote_marker([other], "Jo Reviewer") is None


@pytest.mark.anyio
async def test_all_comments_resolved_clears_vote(make_pr, make_thread, identity):
    host = FakeHost(threads={1: [make_thread(status=ThreadStatus.fixed)]})
    policy = VoteClearPolicy(client=host, mode=ClearWaitingForAuthorMode.all_comments_resolved)

    cleared = await policy.run([make_pr(1, vote=-5)], identity)

    assert [pr.pull_request_id for pr in cleared] == [1]
    assert host.votes == [("repo-1", 1, "me", 0)]


@pytest.mark.anyio
async def test_only_waiting_for_author_votes_are_touched(make_pr, identity):
    host = FakeHost()
    policy = VoteClearPolicy(client=host, mode=ClearWaitingForAuthorMode.all_comments_resolved)

    cleared = await policy.run([make_pr(1, vote=0), make_pr(2, vote=-10), make_pr(3, vote=10)], identity)

    assert cleared == []
    assert host.votes == []


@pytest.mark.anyio
async def test_never_mode_does_nothing(make_pr, identity):
    host = FakeHost()
    policy = VoteClearPolicy(client=host, mode=ClearWaitingForAuthorMode.never)

    assert await policy.run([make_pr(1, vote=-5)], identity) == []
    assert host.votes == []


@pytest.mark.anyio
async def test_pull_request_updated_mode(make_pr, make_thread, make_iteration, identity):
    host = FakeHost(
        threads={1: [marker(make_thread, at(9))], 2: [marker(make_thread, at(9))], 3: []},
        iterations={
            1: [make_iteration(1, at(10))],
            2: [make_iteration(1, at(8))],
            3: [make_iteration(1, at(10))],
        },
    )
    policy = VoteClearPolicy(client=host, mode=ClearWaitingForAuthorMode.pull_request_updated)

    cleared = await policy.run([make_pr(1, vote=-5), make_pr(2, vote=-5), make_pr(3, vote=-5)], identity)

    assert [pr.pull_request_id for pr in cleared] == [1]


@pytest.mark.anyio
async def test_vote_update_failure_is_isolated(make_pr, identity):
    host = FakeHost(vote_error=VoteUpdateError("Azure DevOps API error (403): denied", 403))
    policy = VoteClearPolicy(client=host, mode=ClearWaitingForAuthorMode.all_comments_resolved)

    cleared = await policy.run([make_pr(1, vote=-5), make_pr(2, vote=-5)], identity)

    assert cleared == []
    assert [vote[1] for vote in host.votes] == [1, 2]


@pytest.mark.anyio
async def test_missing_reviewer_is_skipped(make_pr, identity):
    host = FakeHost()
    policy = VoteClearPolicy(client=host, mode=ClearWaitingForAuthorMode.all_comments_resolved)
    orphan = make_pr(1, reviewers=[Reviewer(id="someone-else", vote=-5)])

    cleared = await policy.run([orphan, make_pr(2, vote=-5)], identity)

    assert [pr.pull_request_id for pr in cleared] == [2]


@pytest.mark.anyio
async def test_thread_fetch_failure_skips_pull_request(make_pr, identity):
    host = FakeHost(threads_error=HostError("Azure DevOps API error (404): gone", 404))
    policy = VoteClearPolicy(client=host, mode=ClearWaitingForAuthorMode.all_comments_resolved)

    assert await policy.run([make_pr(1, vote=-5)], identity) == []
    assert host.votes == []


@pytest.mark.anyio
async def test_transient_failure_propagates(make_pr, identity):
    host = FakeHost(threads_error=TransientHostError("Azure DevOps connection failed"))
    policy = VoteClearPolicy(client=host, mode=ClearWaitingForAuthorMode.all_comments_resolved)

    with pytest.raises(TransientHostError):
        await policy.run([make_pr(1, vote=-5)], identity)

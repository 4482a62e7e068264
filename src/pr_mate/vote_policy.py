"""Automatic reset of "waiting for author" votes."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import structlog

from .classifier import find_review
from .client import AzureDevOpsClient
from .config import ClearWaitingForAuthorMode
from .errors import HostError, ReviewerNotFound, TransientHostError
from .schemas import (
    CommentThread,
    CommentType,
    Identity,
    PullRequest,
    PullRequestIteration,
    Reviewer,
    Vote,
)

logger = structlog.get_logger(__name__)


def all_threads_resolved(threads: Iterable[CommentThread]) -> bool:
    return not any(thread.is_open for thread in threads)


def vote_marker(display_name: str) -> str:
    """Content of the system comment the host posts when a -5 vote is cast."""
    return f"{display_name} voted {int(Vote.waiting_for_author)}"


def find_vote_marker(threads: Iterable[CommentThread], display_name: str) -> CommentThread | None:
    marker = vote_marker(display_name)
    for thread in sorted(threads, key=lambda t: t.published_date, reverse=True):
        if not thread.comments:
            continue
        first = thread.comments[0]
        if first.comment_type == CommentType.system and first.content == marker:
            return thread
    return None


def updated_since_vote(
    iterations: Sequence[PullRequestIteration],
    threads: Sequence[CommentThread],
    display_name: str,
) -> bool:
    """True when the newest push is strictly later than the newest -5 vote marker.

    Without an iteration or a marker there is no evidence the push came after
    the vote, so the answer is False.
    """
    if not iterations:
        return False
    latest = max(iterations, key=lambda iteration: iteration.updated_date)
    marker = find_vote_marker(threads, display_name)
    if marker is None:
        return False
    return latest.updated_date > marker.published_date


@dataclass(slots=True)
class VoteClearPolicy:
    client: AzureDevOpsClient
    mode: ClearWaitingForAuthorMode

    @property
    def enabled(self) -> bool:
        return self.mode != ClearWaitingForAuthorMode.never

    async def should_clear(self, pr: PullRequest, review: Reviewer) -> bool:
        if not self.enabled or review.vote != Vote.waiting_for_author:
            return False
        repository_id = pr.repository.id
        threads = await self.client.list_threads(repository_id, pr.pull_request_id)
        if self.mode == ClearWaitingForAuthorMode.all_comments_resolved:
            return all_threads_resolved(threads)
        iterations = await self.client.list_iterations(repository_id, pr.pull_request_id)
        return updated_since_vote(iterations, threads, review.display_name)

    async def run(self, prs: Iterable[PullRequest], identity: Identity) -> list[PullRequest]:
        """Clear every eligible -5 vote; returns the pull requests that were reset.

        Failures on one pull request are logged and skipped. Transient host
        errors propagate so the whole tick is retried.
        """
        cleared: list[PullRequest] = []
        if not self.enabled:
            return cleared
        for pr in prs:
            log = logger.bind(
                pull_request_id=pr.pull_request_id,
                title=pr.title,
                repository=pr.repository.name,
            )
            try:
                review = find_review(pr, identity)
            except ReviewerNotFound as exc:
                log.warning("reviewer_not_found", error=str(exc))
                continue
            if review.vote != Vote.waiting_for_author:
                continue

            try:
                clear = await self.should_clear(pr, review)
            except TransientHostError:
                raise
            except HostError as exc:
                log.warning("vote_clear_check_failed", error=str(exc))
                continue
            if not clear:
                log.debug("vote_clear_not_permitted", mode=self.mode.value)
                continue

            try:
                await self.client.set_review_vote(
                    pr.repository.id, pr.pull_request_id, review.id, Vote.no_vote
                )
            except HostError as exc:
                log.warning("vote_update_failed", error=str(exc))
                continue
            log.info("waiting_for_author_vote_cleared", mode=self.mode.value)
            cleared.append(pr)
        return cleared


__all__ = [
    "VoteClearPolicy",
    "all_threads_resolved",
    "find_vote_marker",
    "updated_since_vote",
    "vote_marker",
]

"""Decide which pull requests await the reviewer's attention."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from .config import Settings
from .errors import ReviewerNotFound
from .schemas import Identity, PullRequest, Reviewer, Vote

logger = structlog.get_logger(__name__)


def find_review(pr: PullRequest, identity: Identity) -> Reviewer:
    """Return the reviewer entry belonging to ``identity``."""
    for reviewer in pr.reviewers:
        if reviewer.id == identity.id:
            return reviewer
    raise ReviewerNotFound(pr.pull_request_id, identity.id)


def is_awaiting_attention(pr: PullRequest, identity: Identity, settings: Settings) -> bool:
    """Raises ReviewerNotFound when ``identity`` is not a reviewer of ``pr``."""
    if pr.is_draft and not settings.include_draft:
        return False
    review = find_review(pr, identity)
    if review.has_declined:
        return False
    if review.vote == Vote.no_vote:
        return True
    if review.vote == Vote.waiting_for_author:
        return settings.include_waiting_for_author
    if review.vote == Vote.rejected:
        return settings.include_rejected
    return False


def count_awaiting(prs: Iterable[PullRequest], identity: Identity, settings: Settings) -> int:
    count = 0
    for pr in prs:
        try:
            if is_awaiting_attention(pr, identity, settings):
                count += 1
        except ReviewerNotFound as exc:
            logger.warning(
                "reviewer_not_found",
                pull_request_id=pr.pull_request_id,
                title=pr.title,
                repository=pr.repository.name,
                error=str(exc),
            )
    return count


__all__ = ["count_awaiting", "find_review", "is_awaiting_attention"]

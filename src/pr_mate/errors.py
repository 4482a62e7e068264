"""Error taxonomy for host access and review automation."""

from __future__ import annotations


class HostError(Exception):
    """Azure DevOps call failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientHostError(HostError):
    """Network, authentication or rate-limit failure; the tick is retried on schedule."""


class RepositoryFetchError(HostError):
    """A single repository could not be listed."""


class VoteUpdateError(HostError):
    """Resetting a reviewer vote failed."""


class ReviewerNotFound(LookupError):
    """The authenticated user is not listed as a reviewer on a pull request."""

    def __init__(self, pull_request_id: int, identity_id: str) -> None:
        super().__init__(
            f"Reviewer {identity_id} not found on pull request {pull_request_id}"
        )
        self.pull_request_id = pull_request_id
        self.identity_id = identity_id


__all__ = [
    "HostError",
    "RepositoryFetchError",
    "ReviewerNotFound",
    "TransientHostError",
    "VoteUpdateError",
]

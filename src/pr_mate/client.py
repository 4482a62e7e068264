"""Azure DevOps REST API client."""

from __future__ import annotations

from typing import Any, NoReturn

import httpx
import structlog
from pydantic import ValidationError

from .errors import (
    HostError,
    RepositoryFetchError,
    TransientHostError,
    VoteUpdateError,
)
from .schemas import (
    CommentThread,
    Identity,
    PullRequest,
    PullRequestIteration,
    Repository,
)

logger = structlog.get_logger(__name__)

API_VERSION = "7.1"
CONNECTION_DATA_API_VERSION = "7.1-preview.1"


def _handle_http_error(e: httpx.HTTPStatusError, error_cls: type[HostError]) -> NoReturn:
    """Extract the Azure DevOps error message and raise the matching HostError."""
    status = e.response.status_code
    try:
        host_message = e.response.json().get("message", "Unknown error")
    except Exception:
        host_message = e.response.text or "Unknown error"

    if status == 401:
        raise TransientHostError(f"Invalid or expired access token: {host_message}", status) from e
    if status == 429:
        raise TransientHostError(f"Azure DevOps rate limit exceeded: {host_message}", status) from e
    raise error_cls(f"Azure DevOps API error ({status}): {host_message}", status) from e


class AzureDevOpsClient:
    """Async client for the Git pull request endpoints of one organisation."""

    def __init__(self, organization_url: str, token: str, *, timeout: float = 30.0) -> None:
        self.base_url = organization_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=timeout,
            auth=httpx.BasicAuth("", token),
            headers={"Accept": "application/json"},
        )
        self._identity: Identity | None = None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AzureDevOpsClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
        error_cls: type[HostError] = HostError,
        api_version: str = API_VERSION,
    ) -> dict[str, Any]:
        query = {"api-version": api_version, **(params or {})}
        try:
            logger.debug("azure_api_request", method=method, path=path)
            response = await self._client.request(
                method, f"{self.base_url}{path}", params=query, json=payload
            )
            response.raise_for_status()
            logger.debug("azure_api_success", method=method, path=path, status=response.status_code)
            return response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            logger.warning("azure_api_error", method=method, path=path, status=e.response.status_code)
            _handle_http_error(e, error_cls)
        except httpx.RequestError as e:
            logger.warning("azure_api_connection_failed", method=method, path=path, error=str(e))
            raise TransientHostError(f"Azure DevOps connection failed: {e}") from e
        except ValueError as e:
            raise HostError(f"Azure DevOps returned malformed JSON for {path}: {e}") from e

    async def _list(self, model: type, path: str, **kwargs: Any) -> list[Any]:
        data = await self._request("GET", path, **kwargs)
        try:
            return [model.model_validate(item) for item in data.get("value", [])]
        except ValidationError as e:
            raise HostError(f"Unexpected payload from {path}: {e}") from e

    async def authorized_identity(self) -> Identity:
        """Identity behind the access token, fetched once per client."""
        if self._identity is None:
            data = await self._request(
                "GET",
                "/_apis/connectionData",
                error_cls=TransientHostError,
                api_version=CONNECTION_DATA_API_VERSION,
            )
            user = data.get("authenticatedUser") or {}
            if not user.get("id"):
                raise TransientHostError("Azure DevOps did not report an authenticated user")
            self._identity = Identity(
                id=user["id"],
                display_name=user.get("providerDisplayName") or user.get("customDisplayName") or "",
            )
            logger.info("azure_identity_resolved", identity=self._identity.display_name)
        return self._identity

    async def list_repositories(self) -> list[Repository]:
        return await self._list(
            Repository, "/_apis/git/repositories", error_cls=TransientHostError
        )

    async def list_pull_requests(self, repository_id: str, reviewer_id: str) -> list[PullRequest]:
        """Active pull requests in a repository with ``reviewer_id`` among the reviewers."""
        return await self._list(
            PullRequest,
            f"/_apis/git/repositories/{repository_id}/pullrequests",
            params={
                "searchCriteria.status": "active",
                "searchCriteria.reviewerId": reviewer_id,
            },
            error_cls=RepositoryFetchError,
        )

    async def list_threads(self, repository_id: str, pull_request_id: int) -> list[CommentThread]:
        return await self._list(
            CommentThread,
            f"/_apis/git/repositories/{repository_id}/pullRequests/{pull_request_id}/threads",
        )

    async def list_iterations(
        self, repository_id: str, pull_request_id: int
    ) -> list[PullRequestIteration]:
        return await self._list(
            PullRequestIteration,
            f"/_apis/git/repositories/{repository_id}/pullRequests/{pull_request_id}/iterations",
        )

    async def set_review_vote(
        self, repository_id: str, pull_request_id: int, reviewer_id: str, vote: int
    ) -> None:
        """Set a reviewer's vote. Repeating the same vote leaves the host unchanged."""
        path = (
            f"/_apis/git/repositories/{repository_id}/pullRequests/{pull_request_id}"
            f"/reviewers/{reviewer_id}"
        )
        await self._request("PUT", path, payload={"vote": int(vote)}, error_cls=VoteUpdateError)
        logger.info(
            "review_vote_updated",
            repository_id=repository_id,
            pull_request_id=pull_request_id,
            vote=int(vote),
        )


__all__ = ["API_VERSION", "AzureDevOpsClient"]

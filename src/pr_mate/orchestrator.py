"""Poll cycle: vote automation, awaiting count, reminders and status."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import anyio
import structlog

from .classifier import count_awaiting
from .client import AzureDevOpsClient
from .config import Settings
from .errors import HostError, RepositoryFetchError
from .notifier import Notifier, Status
from .reminder import ReminderCadenceTracker
from .schemas import Identity, PullRequest, Repository
from .vote_policy import VoteClearPolicy

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class TickResult:
    count: int | None = None
    reminded: bool = False
    cleared: tuple[int, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class PollOrchestrator:
    """Run one poll cycle against the host and publish the outcome."""

    client: AzureDevOpsClient
    settings: Settings
    notifier: Notifier
    reminders: ReminderCadenceTracker
    max_concurrent_fetches: int = 4
    clock: Callable[[], datetime] = _utcnow
    _status: Status = field(default_factory=Status, init=False)

    @property
    def status(self) -> Status:
        return self._status

    @property
    def policy(self) -> VoteClearPolicy:
        return VoteClearPolicy(client=self.client, mode=self.settings.clear_waiting_for_author)

    def _publish(self, status: Status) -> None:
        self._status = status
        self.notifier.set_status(status.count, status.fetching, status.error)

    async def _fetch_repository(
        self, repository: Repository, identity: Identity
    ) -> list[PullRequest]:
        try:
            return await self.client.list_pull_requests(repository.id, identity.id)
        except RepositoryFetchError as exc:
            logger.warning(
                "repository_fetch_failed", repository=repository.name, error=str(exc)
            )
            return []

    async def fetch_pull_requests(self, identity: Identity) -> list[PullRequest]:
        """Active pull requests with ``identity`` as reviewer, across all repositories.

        Repositories that cannot be listed contribute nothing. Any other host
        error is raised after the remaining fetches finish.
        """
        repositories = await self.client.list_repositories()
        results: list[list[PullRequest]] = [[] for _ in repositories]
        failures: list[HostError] = []
        limiter = anyio.CapacityLimiter(self.max_concurrent_fetches)

        async def fetch(index: int, repository: Repository) -> None:
            async with limiter:
                try:
                    results[index] = await self._fetch_repository(repository, identity)
                except HostError as exc:
                    failures.append(exc)

        async with anyio.create_task_group() as tg:
            for index, repository in enumerate(repositories):
                tg.start_soon(fetch, index, repository)

        if failures:
            raise failures[0]
        pull_requests = [pr for prs in results for pr in prs]
        logger.debug(
            "pull_requests_fetched",
            repositories=len(repositories),
            pull_requests=len(pull_requests),
        )
        return pull_requests

    async def run_automations(self, identity: Identity) -> list[PullRequest]:
        policy = self.policy
        if not policy.enabled:
            return []
        return await policy.run(await self.fetch_pull_requests(identity), identity)

    async def count_pull_requests(self, identity: Identity) -> int:
        prs = await self.fetch_pull_requests(identity)
        return count_awaiting(prs, identity, self.settings)

    async def tick(self) -> TickResult:
        self._publish(Status(count=self._status.count, fetching=True))
        try:
            identity = await self.client.authorized_identity()
            cleared = await self.run_automations(identity)
            count = await self.count_pull_requests(identity)
            reminded = self.reminders.remind_if_due(
                count, self.clock(), self.notifier.show_reminder
            )
            self._publish(Status(count=count))
        except Exception as exc:
            logger.error("refresh_failed", error=str(exc), exc_info=exc)
            self.notifier.set_error_tooltip()
            self._publish(Status(count=self._status.count, error=True))
            return TickResult(error=str(exc))

        logger.info(
            "refresh_complete",
            count=count,
            cleared=len(cleared),
            reminded=reminded,
        )
        return TickResult(
            count=count,
            reminded=reminded,
            cleared=tuple(pr.pull_request_id for pr in cleared),
        )


__all__ = ["PollOrchestrator", "TickResult"]

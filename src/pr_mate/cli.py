"""CLI entry point."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import structlog

from .client import AzureDevOpsClient
from .config import Settings, load_settings
from .logging_config import close_logging, configure_logging
from .notifier import LoggingNotifier, Notifier
from .orchestrator import PollOrchestrator
from .reminder import ReminderCadenceTracker
from .scheduler import PollScheduler

logger = structlog.get_logger(__name__)


async def run(settings: Settings, notifier: Notifier) -> None:
    """Poll until cancelled."""
    if not settings.access_token:
        raise ValueError(
            "An Azure DevOps access token is required "
            "(Azure.PersonalAccessToken or AZURE_PERSONAL_ACCESS_TOKEN)"
        )
    async with AzureDevOpsClient(settings.organization_url, settings.access_token) as client:
        orchestrator = PollOrchestrator(
            client=client,
            settings=settings,
            notifier=notifier,
            reminders=ReminderCadenceTracker.every(settings.reminder_frequency_minutes),
        )
        scheduler = PollScheduler(orchestrator.tick, interval=settings.fetch_frequency_seconds)
        logger.info(
            "polling_started",
            organization=settings.organization_url,
            interval=settings.fetch_frequency_seconds,
            clear_mode=settings.clear_waiting_for_author.value,
        )
        await scheduler.run()


def main() -> None:
    config_path = Path(os.environ.get("PRMATE_CONFIG", "config.json"))
    secrets_path = Path(os.environ.get("PRMATE_SECRETS", "secrets.json"))
    settings = load_settings(config_path, secrets_path, os.environ)
    configure_logging(settings.log_level, settings.log_file)
    try:
        asyncio.run(run(settings, LoggingNotifier(settings.pull_requests_url)))
    except KeyboardInterrupt:
        logger.info("polling_stopped")
    finally:
        close_logging()


if __name__ == "__main__":
    main()

"""Configuration loading for the review agent."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

DEFAULT_ORGANIZATION_URL = "https://dev.azure.com/PebblePad"


class ClearWaitingForAuthorMode(str, Enum):
    never = "Never"
    pull_request_updated = "PullRequestUpdated"
    all_comments_resolved = "AllCommentsResolved"


@dataclass(slots=True, frozen=True)
class Settings:
    """Settings loaded once at startup."""

    access_token: str | None = None
    organization_url: str = DEFAULT_ORGANIZATION_URL
    include_waiting_for_author: bool = True
    include_rejected: bool = False
    include_draft: bool = False
    clear_waiting_for_author: ClearWaitingForAuthorMode = ClearWaitingForAuthorMode.never
    reminder_frequency_minutes: int = 30
    fetch_frequency_seconds: int = 180
    log_level: str = "INFO"
    log_file: Path | None = None

    @property
    def pull_requests_url(self) -> str:
        return f"{self.organization_url.rstrip('/')}/_pulls"


def _read_document(path: Path | None) -> dict[str, Any]:
    if path is None or not path.exists():
        return {}
    # safe_load accepts JSON as well as YAML
    data = yaml.safe_load(path.read_text()) or {}
    if not isinstance(data, MutableMapping):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return dict(data)


def merge_documents(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_documents(current, value)
        else:
            merged[key] = value
    return merged


def _bool(data: Mapping[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    raise ValueError(f"{key} must be a boolean, got {value!r}")


def _positive_int(data: Mapping[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be an integer, got {value!r}") from None
    if isinstance(value, bool) or number <= 0:
        raise ValueError(f"{key} must be a positive integer, got {value!r}")
    return number


def _clear_mode(data: Mapping[str, Any]) -> ClearWaitingForAuthorMode:
    raw = data.get("ClearWaitingForAuthorVotes", ClearWaitingForAuthorMode.never.value)
    for mode in ClearWaitingForAuthorMode:
        if str(raw).lower() == mode.value.lower():
            return mode
    allowed = ", ".join(mode.value for mode in ClearWaitingForAuthorMode)
    raise ValueError(f"ClearWaitingForAuthorVotes must be one of {allowed}, got {raw!r}")


LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _log_level(data: Mapping[str, Any], env: Mapping[str, str]) -> str:
    raw = env.get("LOG_LEVEL") or str(data.get("LogLevel", "INFO"))
    level = raw.upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"LogLevel must be one of {', '.join(LOG_LEVELS)}, got {raw!r}")
    return level


def settings_from_mapping(data: Mapping[str, Any], env: Mapping[str, str] | None = None) -> Settings:
    env = env or {}
    azure = data.get("Azure") or {}
    if not isinstance(azure, Mapping):
        raise ValueError("Azure section must be a mapping")
    token = env.get("AZURE_PERSONAL_ACCESS_TOKEN") or azure.get("PersonalAccessToken")
    log_file = data.get("LogFile")
    return Settings(
        access_token=token or None,
        organization_url=str(data.get("OrganizationUrl", DEFAULT_ORGANIZATION_URL)),
        include_waiting_for_author=_bool(data, "IncludeWaitingForAuthor", True),
        include_rejected=_bool(data, "IncludeRejected", False),
        include_draft=_bool(data, "IncludeDraft", False),
        clear_waiting_for_author=_clear_mode(data),
        reminder_frequency_minutes=_positive_int(data, "ReminderFrequencyInMinutes", 30),
        fetch_frequency_seconds=_positive_int(data, "FetchFrequencyInSeconds", 180),
        log_level=_log_level(data, env),
        log_file=Path(log_file) if log_file else None,
    )


def load_settings(
    config_path: Path,
    secrets_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Read the config document, overlay the secrets document and the environment."""
    data = merge_documents(_read_document(config_path), _read_document(secrets_path))
    return settings_from_mapping(data, env)


__all__ = [
    "ClearWaitingForAuthorMode",
    "DEFAULT_ORGANIZATION_URL",
    "LOG_LEVELS",
    "Settings",
    "load_settings",
    "merge_documents",
    "settings_from_mapping",
]
